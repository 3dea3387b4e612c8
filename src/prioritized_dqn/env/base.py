"""Functional environment interface for pure-JAX games.

Follows the Gymnax-style API where all functions are pure
(no hidden state mutation) and compatible with jit/vmap.

Core pattern::

    env = Catch()
    params = env.default_params()
    key = jax.random.PRNGKey(0)

    obs, state = env.reset(key, params)
    obs, state, reward, done, info = env.step(key, state, action, params)

The stateful, host-side view used by the training loop is
:class:`prioritized_dqn.env.game.Game`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import equinox as eqx
import jax

from prioritized_dqn.env.spaces import Box, Discrete


class EnvState(eqx.Module):
    """Base class for environment states.

    States are immutable PyTrees: step() returns a *new* state.
    """

    time: jax.Array  # current timestep within the episode


class EnvParams(eqx.Module):
    """Base class for environment parameters (static, hashable)."""


class Environment(ABC):
    """Abstract base for pure-JAX environments with a discrete action set."""

    @abstractmethod
    def reset(
        self,
        key: jax.Array,
        params: EnvParams,
    ) -> tuple[jax.Array, EnvState]:
        """Reset the environment and return ``(obs, state)``."""
        ...

    @abstractmethod
    def step(
        self,
        key: jax.Array,
        state: EnvState,
        action: jax.Array,
        params: EnvParams,
    ) -> tuple[jax.Array, EnvState, jax.Array, jax.Array, dict[str, Any]]:
        """Advance one timestep.

        Returns:
            ``(obs, state, reward, done, info)``.
        """
        ...

    @abstractmethod
    def default_params(self) -> EnvParams:
        ...

    @abstractmethod
    def observation_space(self, params: EnvParams) -> Box:
        ...

    @abstractmethod
    def action_space(self, params: EnvParams) -> Discrete:
        ...

    @property
    def noop_action(self) -> int:
        """Action that leaves the game unchanged, used for random starts."""
        return 0

    @property
    def name(self) -> str:
        return self.__class__.__name__
