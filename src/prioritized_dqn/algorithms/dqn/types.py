"""DQN-specific state container."""

from __future__ import annotations

from typing import NamedTuple

import chex

from prioritized_dqn.types import OptState, Params


class DQNState(NamedTuple):
    """DQN agent state.

    All fields are JAX pytree-compatible.

    Fields:
        params: Online (policy) Q-network parameters (Equinox model).
        target_params: Target Q-network; changed only by target sync.
        opt_state: Optax optimizer state.
        step: Number of learning steps taken.
        rng: PRNG key for action selection.
    """

    params: Params
    target_params: Params
    opt_state: OptState
    step: chex.Array
    rng: chex.PRNGKey
