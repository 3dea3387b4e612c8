"""Exception types raised by the replay memory and checkpoint layers."""

from __future__ import annotations


class ReplayError(Exception):
    """Base class for replay-memory protocol errors."""


class InvalidPriorityMode(ReplayError, ValueError):
    """Sampling mode is not one of ``none``, ``rank`` or ``proportional``."""

    def __init__(self, mode: str) -> None:
        super().__init__(
            f"Unrecognised type of prioritised experience replay: {mode!r}. "
            f"Expected one of: none, rank, proportional."
        )
        self.mode = mode


class InsufficientExperience(ReplayError, RuntimeError):
    """``sample`` was called with fewer valid transitions than the batch size."""

    def __init__(self, available: int, batch_size: int) -> None:
        super().__init__(
            f"Cannot sample {batch_size} transitions from a memory holding "
            f"{available}; do not learn before enough experience exists."
        )
        self.available = available
        self.batch_size = batch_size


class IndexOutOfRange(ReplayError, IndexError):
    """A transition index is invalid or was evicted since it was sampled."""


class CheckpointError(RuntimeError):
    """A checkpoint directory is incomplete or cannot be deserialised."""
