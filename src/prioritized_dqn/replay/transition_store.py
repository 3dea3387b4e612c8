"""Fixed-capacity circular transition storage.

Storage uses pre-allocated numpy arrays for O(1) insertion; reads return
a ``Transition`` of jax arrays ready for a jitted learning step.  The store
lives outside the compiled step, in the Python training loop.

Every slot also remembers the write serial ("stamp") of the transition
that currently occupies it.  A caller that sampled an index can hand the
stamp back to :meth:`TransitionStore.retrieve`, which then rejects the
index if the slot has been overwritten in the meantime.
"""

from __future__ import annotations

from collections.abc import Sequence

import jax.numpy as jnp
import numpy as np

from prioritized_dqn.errors import IndexOutOfRange
from prioritized_dqn.types import Transition


class TransitionStore:
    """Circular buffer of ``(obs, action, reward, next_obs, done)`` records.

    Valid transitions occupy slots ``[0, len(store))``.  Once the store is
    full the oldest slot is overwritten on every write.
    """

    def __init__(
        self,
        capacity: int,
        obs_shape: tuple[int, ...],
        obs_dtype: np.dtype | type = np.float32,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.obs_shape = tuple(obs_shape)
        self._size = 0
        self._ptr = 0
        self._writes = 0

        self._obs = np.zeros((capacity, *obs_shape), dtype=obs_dtype)
        self._actions = np.zeros(capacity, dtype=np.int32)
        self._rewards = np.zeros(capacity, dtype=np.float32)
        self._next_obs = np.zeros((capacity, *obs_shape), dtype=obs_dtype)
        self._dones = np.zeros(capacity, dtype=np.bool_)
        self._stamps = np.full(capacity, -1, dtype=np.int64)

    def store(
        self,
        obs: np.ndarray,
        action: int | np.ndarray,
        reward: float,
        next_obs: np.ndarray,
        done: bool,
    ) -> int:
        """Write one transition at the cursor and return the slot used."""
        idx = self._ptr
        self._obs[idx] = obs
        self._actions[idx] = action
        self._rewards[idx] = reward
        self._next_obs[idx] = next_obs
        self._dones[idx] = done
        self._stamps[idx] = self._writes
        self._writes += 1
        self._ptr = (self._ptr + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)
        return idx

    def stamps(self, indices: np.ndarray | Sequence[int]) -> np.ndarray:
        """Return the write serials of the transitions at *indices*."""
        idx = self._validate(indices)
        return self._stamps[idx].copy()

    def retrieve(
        self,
        indices: np.ndarray | Sequence[int],
        stamps: np.ndarray | None = None,
    ) -> Transition:
        """Gather the transitions at *indices* as a batched ``Transition``.

        Raises:
            IndexOutOfRange: If an index was never written, or if *stamps*
                is given and a slot has been overwritten since sampling.
        """
        idx = self._validate(indices)
        if stamps is not None:
            stamps = np.asarray(stamps, dtype=np.int64)
            stale = self._stamps[idx] != stamps
            if np.any(stale):
                raise IndexOutOfRange(
                    f"Transitions at indices {idx[stale].tolist()} were "
                    f"overwritten after being sampled"
                )
        return Transition(
            obs=jnp.asarray(self._obs[idx]),
            action=jnp.asarray(self._actions[idx]),
            reward=jnp.asarray(self._rewards[idx]),
            next_obs=jnp.asarray(self._next_obs[idx]),
            done=jnp.asarray(self._dones[idx]),
        )

    def _validate(self, indices: np.ndarray | Sequence[int]) -> np.ndarray:
        idx = np.asarray(indices, dtype=np.int64)
        if idx.ndim != 1:
            raise IndexOutOfRange(f"Expected a 1-D index array, got shape {idx.shape}")
        bad = (idx < 0) | (idx >= self._size)
        if np.any(bad):
            raise IndexOutOfRange(
                f"Indices {idx[bad].tolist()} outside valid range [0, {self._size})"
            )
        return idx

    @property
    def cursor(self) -> int:
        """Slot that the next :meth:`store` call will write."""
        return self._ptr

    @property
    def writes(self) -> int:
        """Total number of transitions ever stored."""
        return self._writes

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"TransitionStore(size={self._size}, capacity={self.capacity})"
