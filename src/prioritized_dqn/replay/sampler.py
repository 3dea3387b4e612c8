"""Minibatch sampling policies over the replay memory.

Two policies are implemented:

- ``none``: uniform sampling without replacement, unit weights.
- ``rank``: stratified rank-based prioritisation (Schaul et al., 2015).
  One rank is drawn from each of ``batch_size`` equal-mass segments of
  ``P(rank) ∝ rank^-alpha`` and mapped to a slot through the priority
  index.  Importance-sampling weights ``(n * P)^-beta`` are normalised by
  their batch maximum.

``proportional`` (sum-tree) prioritisation is not implemented; asking for
it is downgraded to ``rank`` once, at configuration time.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from prioritized_dqn.errors import InsufficientExperience, InvalidPriorityMode
from prioritized_dqn.replay.priority_index import RankPartition, RankPriorityIndex
from prioritized_dqn.replay.transition_store import TransitionStore

logger = logging.getLogger(__name__)

PRIORITY_MODES = ("none", "rank", "proportional")


def resolve_priority_mode(mode: str) -> str:
    """Validate a configured sampling mode and return the one to use.

    Raises:
        InvalidPriorityMode: If *mode* is not a known mode.
    """
    if mode not in PRIORITY_MODES:
        raise InvalidPriorityMode(mode)
    if mode == "proportional":
        logger.warning(
            "Proportional prioritised experience replay is not implemented, "
            "switching to rank-based"
        )
        return "rank"
    return mode


class SampleBatch(NamedTuple):
    """Indices drawn from the memory plus their correction weights.

    Fields:
        indices: Slot indices, shape ``(B,)``.
        weights: Importance-sampling weights in ``(0, 1]``, shape ``(B,)``.
        stamps:  Write serials of the sampled slots, used to detect eviction.
    """

    indices: np.ndarray
    weights: np.ndarray
    stamps: np.ndarray


class PrioritizedSampler:
    """Draws minibatch indices from a store under a prioritisation policy.

    The rank partition is cached and rebuilt lazily: only when the batch
    size changes, when the memory has grown by more than
    *partition_refresh* (as a fraction of the size the partition was built
    for), or when the memory first reaches capacity.
    """

    def __init__(
        self,
        store: TransitionStore,
        index: RankPriorityIndex,
        *,
        mode: str,
        alpha: float,
        rng: np.random.Generator,
        partition_refresh: float = 0.01,
    ) -> None:
        if mode not in ("none", "rank"):
            raise InvalidPriorityMode(mode)
        self.store = store
        self.index = index
        self.mode = mode
        self.alpha = alpha
        self.partition_refresh = partition_refresh
        self._rng = rng
        self._partition: RankPartition | None = None

    def sample(self, batch_size: int, beta: float) -> SampleBatch:
        size = len(self.store)
        if size < batch_size:
            raise InsufficientExperience(size, batch_size)

        if self.mode == "none":
            indices = self._rng.choice(size, size=batch_size, replace=False).astype(np.int64)
            weights = np.ones(batch_size, dtype=np.float32)
        else:
            partition = self.partition(batch_size)
            ranks = partition.sample_ranks(self._rng)
            indices = self.index.indices_at_ranks(ranks)
            probs = partition.probability(ranks)
            weights = (partition.size * probs) ** (-beta)
            weights = (weights / weights.max()).astype(np.float32)

        return SampleBatch(
            indices=indices,
            weights=weights,
            stamps=self.store.stamps(indices),
        )

    def partition(self, batch_size: int) -> RankPartition:
        """Return the current rank partition, rebuilding it if stale."""
        size = len(self.store)
        p = self._partition
        stale = (
            p is None
            or p.batch_size != batch_size
            or size > p.size * (1.0 + self.partition_refresh)
            or (size == self.store.capacity and p.size != size)
        )
        if stale:
            self._partition = RankPartition.build(size, batch_size, self.alpha)
            logger.debug("Rebuilt rank partition for %d transitions", size)
        return self._partition
