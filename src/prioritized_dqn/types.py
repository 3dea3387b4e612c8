"""Core type definitions for prioritized_dqn.

State containers are NamedTuples for zero-overhead JAX pytree compatibility.
"""

from __future__ import annotations

from typing import Any, NamedTuple, TypeAlias

import chex

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
Params: TypeAlias = Any  # Equinox model (itself a pytree)
OptState: TypeAlias = Any  # optax optimizer state pytree


# ---------------------------------------------------------------------------
# Transition container (immutable NamedTuple, auto-registered as a pytree)
# ---------------------------------------------------------------------------
class Transition(NamedTuple):
    """A single (s, a, r, s', done) experience tuple.

    For batched transitions every field carries a leading batch dimension;
    the type is the same, just higher-rank.

    Fields:
        obs:      Observation.          scalar: (*obs_shape,)  batched: (B, *obs_shape)
        action:   Action index taken.   scalar: ()             batched: (B,)
        reward:   Clipped reward.       scalar: ()             batched: (B,)
        next_obs: Next observation.     scalar: (*obs_shape,)  batched: (B, *obs_shape)
        done:     Episode termination.  scalar: ()             batched: (B,)
    """

    obs: chex.Array
    action: chex.Array
    reward: chex.Array
    next_obs: chex.Array
    done: chex.Array
