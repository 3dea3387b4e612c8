"""Exploration and importance-sampling schedules.

``ExplorationSchedule`` precomputes the per-step epsilon and beta tables
for a whole training run, so the training loop reads them in O(1)::

    from prioritized_dqn.schedule import ExplorationSchedule

    schedule = ExplorationSchedule.from_config(dqn_config, total_steps=100_000)
    eps = schedule.epsilon_at(step)
    beta = schedule.beta_at(step)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import chex
import jax
import jax.numpy as jnp
import numpy as np

if TYPE_CHECKING:
    from prioritized_dqn.algorithms.dqn.config import DQNConfig


class ExplorationSchedule:
    """Precomputed epsilon and beta tables indexed by (1-based) step.

    * epsilon: ``epsilon_start`` at step 1 falling linearly to
      ``epsilon_end`` at step ``epsilon_steps``, constant afterwards.
    * beta: ``beta_zero`` at step 1 rising linearly to ``1.0`` at the
      final training step.

    Steps beyond the table clamp to its last entry.
    """

    def __init__(
        self,
        total_steps: int,
        *,
        epsilon_start: float,
        epsilon_end: float,
        epsilon_steps: int,
        beta_zero: float,
    ) -> None:
        if total_steps <= 0:
            raise ValueError(f"total_steps must be positive, got {total_steps}")
        self.total_steps = total_steps
        decay_len = min(max(epsilon_steps, 1), total_steps)
        decay = np.linspace(epsilon_start, epsilon_end, max(epsilon_steps, 1))[:decay_len]
        tail = np.full(total_steps - decay_len, epsilon_end)
        self._epsilon = np.concatenate([decay, tail]).astype(np.float64)
        self._beta = np.linspace(beta_zero, 1.0, total_steps, dtype=np.float64)
        self._epsilon.setflags(write=False)
        self._beta.setflags(write=False)

    @classmethod
    def from_config(cls, config: DQNConfig, total_steps: int) -> ExplorationSchedule:
        return cls(
            total_steps,
            epsilon_start=config.epsilon_start,
            epsilon_end=config.epsilon_end,
            epsilon_steps=config.epsilon_steps,
            beta_zero=config.beta_zero,
        )

    def _lookup(self, table: np.ndarray, step: int) -> float:
        i = min(max(int(step), 1), len(table)) - 1
        return float(table[i])

    def epsilon_at(self, step: int) -> float:
        return self._lookup(self._epsilon, step)

    def beta_at(self, step: int) -> float:
        return self._lookup(self._beta, step)

    @property
    def epsilon(self) -> np.ndarray:
        """Read-only epsilon table; entry ``i`` belongs to step ``i + 1``."""
        return self._epsilon

    @property
    def beta(self) -> np.ndarray:
        return self._beta

    def __len__(self) -> int:
        return self.total_steps


def select_action(
    key: chex.PRNGKey,
    q_values: chex.Array,
    epsilon: float | chex.Array,
) -> chex.Array:
    """Epsilon-greedy choice over a vector of Q-values (jit-compatible).

    With probability *epsilon* returns a uniform index in
    ``[0, n_actions)``; otherwise ``argmax(q_values)``, ties going to the
    first occurrence.
    """
    key_eps, key_rand = jax.random.split(key)
    n_actions = q_values.shape[-1]
    greedy_action = jnp.argmax(q_values)
    random_action = jax.random.randint(key_rand, (), 0, n_actions)
    use_random = jax.random.uniform(key_eps) < epsilon
    return jnp.where(use_random, random_action, greedy_action)
