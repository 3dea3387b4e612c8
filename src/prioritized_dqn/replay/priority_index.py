"""Rank-ordered priority index for rank-based prioritised replay.

The index is an array-backed binary max-heap over slot indices with a
position map, so inserting or re-prioritising a slot costs O(log n).
Rank ``r`` is read straight off heap position ``r - 1`` in O(1).  A heap
is only approximately sorted, so :meth:`RankPriorityIndex.rebalance`
periodically sorts the array outright (a descending array is also a valid
heap); between rebalances ranks are approximate, as in Schaul et al. (2015).

:class:`RankPartition` precomputes the power-law distribution
``P(rank) ∝ rank^-alpha`` and splits ranks into ``batch_size`` contiguous
segments of roughly equal probability mass for stratified sampling.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np


class RankPriorityIndex:
    """Indexed max-heap keyed by transition slot.

    Parameters
    ----------
    capacity:
        Number of slots (the replay memory capacity).
    rebalance_interval:
        Fully sort the heap every this many mutations.  ``0`` disables
        automatic rebalancing.
    """

    def __init__(self, capacity: int, rebalance_interval: int = 0) -> None:
        self.capacity = capacity
        self.rebalance_interval = rebalance_interval
        self._heap = np.zeros(capacity, dtype=np.int64)
        self._pos = np.full(capacity, -1, dtype=np.int64)
        self._priorities = np.zeros(capacity, dtype=np.float64)
        self._size = 0
        self._mutations = 0

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, index: int, priority: float) -> None:
        """Insert slot *index* or update its priority if already present."""
        index = int(index)
        pos = int(self._pos[index])
        old = self._priorities[index]
        self._priorities[index] = priority
        if pos < 0:
            pos = self._size
            self._heap[pos] = index
            self._pos[index] = pos
            self._size += 1
            self._sift_up(pos)
        elif priority > old:
            self._sift_up(pos)
        elif priority < old:
            self._sift_down(pos)
        self._after_mutation()

    def remove(self, index: int) -> None:
        """Drop slot *index* from the index."""
        index = int(index)
        pos = int(self._pos[index])
        if pos < 0:
            raise KeyError(f"Slot {index} is not in the priority index")
        last = self._size - 1
        self._swap(pos, last)
        self._pos[index] = -1
        self._priorities[index] = 0.0
        self._size -= 1
        if pos < self._size:
            self._sift_down(pos)
            self._sift_up(pos)
        self._after_mutation()

    def rebalance(self) -> None:
        """Sort the heap array so heap position equals exact rank."""
        live = self._heap[: self._size]
        # Stable: tied entries keep their heap order.
        order = np.argsort(-self._priorities[live], kind="stable")
        self._heap[: self._size] = live[order]
        self._pos[self._heap[: self._size]] = np.arange(self._size)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def priority(self, index: int) -> float:
        if self._pos[int(index)] < 0:
            raise KeyError(f"Slot {index} is not in the priority index")
        return float(self._priorities[int(index)])

    def index_at_rank(self, rank: int) -> int:
        """Slot stored at (1-based) *rank*; rank 1 is the highest priority."""
        if not 1 <= rank <= self._size:
            raise IndexError(f"rank {rank} outside [1, {self._size}]")
        return int(self._heap[rank - 1])

    def indices_at_ranks(self, ranks: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`index_at_rank`."""
        ranks = np.asarray(ranks, dtype=np.int64)
        if np.any((ranks < 1) | (ranks > self._size)):
            raise IndexError(f"ranks outside [1, {self._size}]")
        return self._heap[ranks - 1].copy()

    def __contains__(self, index: object) -> bool:
        return isinstance(index, (int, np.integer)) and 0 <= index < self.capacity and self._pos[index] >= 0

    def __len__(self) -> int:
        return self._size

    @property
    def max_priority(self) -> float:
        """Priority at the heap root, ``0.0`` when empty."""
        if self._size == 0:
            return 0.0
        return float(self._priorities[self._heap[0]])

    # ------------------------------------------------------------------
    # Heap internals
    # ------------------------------------------------------------------

    def _after_mutation(self) -> None:
        self._mutations += 1
        if self.rebalance_interval and self._mutations % self.rebalance_interval == 0:
            self.rebalance()

    def _key(self, pos: int) -> float:
        return self._priorities[self._heap[pos]]

    def _swap(self, i: int, j: int) -> None:
        a, b = self._heap[i], self._heap[j]
        self._heap[i], self._heap[j] = b, a
        self._pos[b] = i
        self._pos[a] = j

    def _sift_up(self, pos: int) -> None:
        while pos > 0:
            parent = (pos - 1) // 2
            if self._key(parent) >= self._key(pos):
                break
            self._swap(pos, parent)
            pos = parent

    def _sift_down(self, pos: int) -> None:
        while True:
            left = 2 * pos + 1
            if left >= self._size:
                break
            child = left
            right = left + 1
            if right < self._size and self._key(right) > self._key(left):
                child = right
            if self._key(pos) >= self._key(child):
                break
            self._swap(pos, child)
            pos = child


class RankPartition(NamedTuple):
    """Power-law rank distribution split into equal-mass segments.

    Fields:
        size:   Number of ranks covered (``1..size``).
        starts: First rank of each segment, shape ``(batch_size,)``.
        ends:   Last rank of each segment (inclusive), shape ``(batch_size,)``.
        probs:  ``P(rank)`` for ranks ``1..size``, shape ``(size,)``.
    """

    size: int
    starts: np.ndarray
    ends: np.ndarray
    probs: np.ndarray

    @property
    def batch_size(self) -> int:
        return len(self.starts)

    @staticmethod
    def build(size: int, batch_size: int, alpha: float) -> RankPartition:
        """Partition ranks ``1..size`` into *batch_size* segments."""
        if size < batch_size:
            raise ValueError(f"size {size} smaller than batch_size {batch_size}")
        ranks = np.arange(1, size + 1, dtype=np.float64)
        pdf = ranks ** (-alpha)
        probs = pdf / pdf.sum()
        cdf = np.cumsum(probs)

        starts = np.empty(batch_size, dtype=np.int64)
        ends = np.empty(batch_size, dtype=np.int64)
        start = 1
        for k in range(1, batch_size):
            # Tolerance absorbs cumsum rounding at exact segment boundaries.
            end = int(np.searchsorted(cdf, k / batch_size - 1e-12, side="left")) + 1
            end = max(end, start)
            end = min(end, size - (batch_size - k))
            starts[k - 1] = start
            ends[k - 1] = end
            start = end + 1
        starts[-1] = start
        ends[-1] = size
        return RankPartition(size=size, starts=starts, ends=ends, probs=probs)

    def sample_ranks(self, rng: np.random.Generator) -> np.ndarray:
        """Draw one rank uniformly from every segment."""
        return rng.integers(self.starts, self.ends + 1)

    def probability(self, ranks: np.ndarray) -> np.ndarray:
        return self.probs[np.asarray(ranks, dtype=np.int64) - 1]
