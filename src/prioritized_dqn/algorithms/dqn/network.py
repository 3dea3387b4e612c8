"""Q-Networks implemented with Equinox."""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp


class QNetwork(eqx.Module):
    """Simple MLP Q-network: obs -> Q(s, a) for each discrete action.

    Observations of any shape are flattened before the first layer.
    """

    layers: list

    def __init__(
        self,
        obs_dim: int,
        n_actions: int,
        hidden_sizes: tuple[int, ...] = (128, 128),
        *,
        key: jax.Array,
    ) -> None:
        dims = [obs_dim, *hidden_sizes, n_actions]
        keys = jax.random.split(key, len(dims) - 1)
        self.layers = [
            eqx.nn.Linear(d_in, d_out, key=k)
            for d_in, d_out, k in zip(dims[:-1], dims[1:], keys)
        ]

    def __call__(self, x: jax.Array) -> jax.Array:
        x = jnp.ravel(x).astype(jnp.float32)
        for layer in self.layers[:-1]:
            x = jax.nn.relu(layer(x))
        return self.layers[-1](x)


class DuelingQNetwork(eqx.Module):
    """Dueling architecture (Wang et al., 2016).

    A shared MLP torso feeds a scalar value stream ``V(s)`` and an
    advantage stream ``A(s, a)``, combined as
    ``Q = V + A - mean(A)``.
    """

    torso: list
    value_head: eqx.nn.Linear
    advantage_head: eqx.nn.Linear

    def __init__(
        self,
        obs_dim: int,
        n_actions: int,
        hidden_sizes: tuple[int, ...] = (128, 128),
        *,
        key: jax.Array,
    ) -> None:
        dims = [obs_dim, *hidden_sizes]
        keys = jax.random.split(key, len(dims) + 1)
        self.torso = [
            eqx.nn.Linear(d_in, d_out, key=k)
            for d_in, d_out, k in zip(dims[:-1], dims[1:], keys[:-2])
        ]
        self.value_head = eqx.nn.Linear(dims[-1], 1, key=keys[-2])
        self.advantage_head = eqx.nn.Linear(dims[-1], n_actions, key=keys[-1])

    def __call__(self, x: jax.Array) -> jax.Array:
        x = jnp.ravel(x).astype(jnp.float32)
        for layer in self.torso:
            x = jax.nn.relu(layer(x))
        value = self.value_head(x)
        advantage = self.advantage_head(x)
        return value + advantage - jnp.mean(advantage)


def make_q_network(
    obs_dim: int,
    n_actions: int,
    hidden_sizes: tuple[int, ...],
    *,
    dueling: bool,
    key: jax.Array,
) -> QNetwork | DuelingQNetwork:
    """Build the Q-network selected by the *dueling* flag."""
    cls = DuelingQNetwork if dueling else QNetwork
    return cls(obs_dim, n_actions, hidden_sizes, key=key)
