"""Experience replay memory: transition store + priority index + sampler.

Design choice: numpy arrays for storage and mutation, jax.Array output on
``retrieve()``.  The memory is NOT jit-compatible: it lives outside the
compiled learning step.  Typical usage::

    memory = ExperienceReplay.from_config(config, obs_shape=(4,), rng=rng)
    memory.store(obs, action, reward, next_obs, done)
    if step >= config.learn_start:
        sample = memory.sample(config.batch_size, beta)
        batch = memory.retrieve(sample.indices, sample.stamps)
        ...
        memory.update_priorities(sample.indices, td_errors)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from prioritized_dqn.replay.priority_index import RankPriorityIndex
from prioritized_dqn.replay.sampler import PrioritizedSampler, SampleBatch, resolve_priority_mode
from prioritized_dqn.replay.transition_store import TransitionStore
from prioritized_dqn.types import Transition

if TYPE_CHECKING:
    from prioritized_dqn.algorithms.dqn.config import DQNConfig


class ExperienceReplay:
    """Fixed-capacity replay memory with rank-based prioritised sampling.

    New transitions enter the priority index with the largest priority
    seen so far, so they are sampled at least once before their TD-error
    is known.  Overwriting a slot replaces its priority entry in the same
    call, so the index never holds entries for evicted transitions.
    """

    def __init__(
        self,
        capacity: int,
        obs_shape: tuple[int, ...],
        *,
        mode: str = "none",
        alpha: float = 0.65,
        priority_eps: float = 1e-6,
        rng: np.random.Generator | None = None,
        rebalance_interval: int = 0,
        partition_refresh: float = 0.01,
        obs_dtype: np.dtype | type = np.float32,
    ) -> None:
        self.mode = resolve_priority_mode(mode)
        self.priority_eps = priority_eps
        self._rng = rng if rng is not None else np.random.default_rng()
        self._store = TransitionStore(capacity, obs_shape, obs_dtype=obs_dtype)
        self._index = RankPriorityIndex(capacity, rebalance_interval=rebalance_interval)
        self._sampler = PrioritizedSampler(
            self._store,
            self._index,
            mode=self.mode,
            alpha=alpha,
            rng=self._rng,
            partition_refresh=partition_refresh,
        )
        self._max_priority = 1.0

    @classmethod
    def from_config(
        cls,
        config: DQNConfig,
        obs_shape: tuple[int, ...],
        *,
        rng: np.random.Generator | None = None,
    ) -> ExperienceReplay:
        return cls(
            config.memory_size,
            obs_shape,
            mode=config.priority_mode,
            alpha=config.alpha,
            priority_eps=config.priority_eps,
            rng=rng,
            rebalance_interval=config.rebalance_interval,
            partition_refresh=config.partition_refresh,
        )

    def store(
        self,
        obs: np.ndarray,
        action: int | np.ndarray,
        reward: float,
        next_obs: np.ndarray,
        done: bool,
    ) -> int:
        """Store a single transition and return the slot it was written to."""
        idx = self._store.store(obs, action, reward, next_obs, done)
        self._index.insert(idx, self._max_priority)
        return idx

    def sample(self, batch_size: int, beta: float = 1.0) -> SampleBatch:
        return self._sampler.sample(batch_size, beta)

    def retrieve(
        self,
        indices: np.ndarray | Sequence[int],
        stamps: np.ndarray | None = None,
    ) -> Transition:
        return self._store.retrieve(indices, stamps)

    def update_priorities(self, indices: np.ndarray, td_errors: np.ndarray) -> None:
        """Set each slot's priority to ``|td_error| + priority_eps``."""
        priorities = np.abs(np.asarray(td_errors, dtype=np.float64)) + self.priority_eps
        for idx, p in zip(np.asarray(indices), priorities):
            self._index.insert(int(idx), float(p))
            self._max_priority = max(self._max_priority, float(p))

    def sample_uniform(self, n: int) -> Transition:
        """Draw *n* distinct transitions uniformly, ignoring priorities."""
        n = min(n, len(self._store))
        indices = self._rng.choice(len(self._store), size=n, replace=False)
        return self._store.retrieve(indices)

    @property
    def transitions(self) -> TransitionStore:
        return self._store

    @property
    def index(self) -> RankPriorityIndex:
        return self._index

    @property
    def capacity(self) -> int:
        return self._store.capacity

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"ExperienceReplay(mode={self.mode!r}, size={len(self)}, capacity={self.capacity})"
