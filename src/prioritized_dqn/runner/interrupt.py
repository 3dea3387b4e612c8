"""SIGINT as a cancellation flag checked between training steps."""

from __future__ import annotations

import logging
import signal
import threading
from types import FrameType

logger = logging.getLogger(__name__)


class InterruptFlag:
    """Records Ctrl+C instead of raising ``KeyboardInterrupt``.

    Use as a context manager; the previous handler is restored on exit::

        with InterruptFlag() as interrupted:
            for step in ...:
                ...
                if interrupted:
                    save(); break

    Outside the main thread signal handlers cannot be installed and the
    flag is only set through :meth:`set`.
    """

    def __init__(self) -> None:
        self._set = False
        self._previous = None

    def set(self) -> None:
        self._set = True

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        logger.warning("SIGINT received, stopping after the current step")
        self._set = True

    def __bool__(self) -> bool:
        return self._set

    def __enter__(self) -> InterruptFlag:
        if threading.current_thread() is threading.main_thread():
            self._previous = signal.signal(signal.SIGINT, self._handle)
        return self

    def __exit__(self, *exc: object) -> None:
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None
