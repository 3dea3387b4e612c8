"""PRNG management for the device and host sides of training.

Network initialisation and action selection draw from explicit JAX keys;
the replay memory samples on the host from a NumPy ``Generator``.  Both
are derived from the single run seed::

    from prioritized_dqn.seeding import make_rng, make_np_rng, split_key

    rng = make_rng(42)
    rng, agent_key = split_key(rng)
    np_rng = make_np_rng(42)
"""

from __future__ import annotations

import jax
import numpy as np


def make_rng(seed: int) -> jax.Array:
    """Create a JAX PRNG key from an integer seed."""
    return jax.random.PRNGKey(seed)


def split_key(rng: jax.Array) -> tuple[jax.Array, jax.Array]:
    """Split *rng* into two keys: ``(new_rng, subkey)``.

    Convenience wrapper around ``jax.random.split`` for the common pattern::

        rng, subkey = split_key(rng)
    """
    return tuple(jax.random.split(rng))  # type: ignore[return-value]


def make_np_rng(seed: int, stream: int = 0) -> np.random.Generator:
    """Host-side generator for replay sampling.

    Different *stream* values give independent generators for the same
    seed, e.g. one for training and one for drawing the validation set.
    """
    return np.random.default_rng([seed, stream])
