"""Observation and action spaces.

Spaces are immutable PyTree nodes; they describe shape, dtype and bounds
and carry no state.
"""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp


class Discrete(eqx.Module):
    """Space of integers {0, 1, ..., n-1}."""

    n: int = eqx.field(static=True)

    def sample(self, key: jax.Array) -> jax.Array:
        return jax.random.randint(key, shape=(), minval=0, maxval=self.n)

    def contains(self, x: jax.Array) -> jax.Array:
        return (x >= 0) & (x < self.n) & (x == jnp.floor(x))

    @property
    def actions(self) -> list[int]:
        """The legal actions as plain ints, in index order."""
        return list(range(self.n))

    @property
    def shape(self) -> tuple[int, ...]:
        return ()


class Box(eqx.Module):
    """Observation space with uniform scalar bounds."""

    low: float = eqx.field(static=True)
    high: float = eqx.field(static=True)
    shape: tuple[int, ...] = eqx.field(static=True)

    def contains(self, x: jax.Array) -> jax.Array:
        return (x.shape == self.shape) & jnp.all((x >= self.low) & (x <= self.high))

    @property
    def dtype(self) -> jnp.dtype:
        return jnp.float32
