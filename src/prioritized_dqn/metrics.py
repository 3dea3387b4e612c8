"""Structured JSONL metrics logger and console logging setup.

Writes one JSON object per line to ``logs/metrics.jsonl`` inside a
:class:`~prioritized_dqn.run_dir.RunDir`. Each line is self-describing;
fields can vary between entries (training progress, validation results,
episode scores).

Usage::

    from prioritized_dqn.run_dir import RunDir
    from prioritized_dqn.metrics import MetricsLogger, setup_logging

    setup_logging()
    run = RunDir("catch_rank")
    with MetricsLogger(run.log_path()) as metrics:
        metrics.write({"step": 1000, "loss": 0.42, "epsilon": 0.9})
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import IO, Any

import jax.numpy as jnp
import numpy as np

PACKAGE_LOGGER = "prioritized_dqn"

# ---------------------------------------------------------------------------
# Structured console logging
# ---------------------------------------------------------------------------

_LEVEL_ABBREV = {
    logging.DEBUG: "D",
    logging.INFO: "I",
    logging.WARNING: "W",
    logging.ERROR: "E",
    logging.CRITICAL: "C",
}


class _TrainFormatter(logging.Formatter):
    """Compact formatter: abbreviated level + millisecond timestamp.

    Example output::

        I 2026-02-15 14:30:22.123 [prioritized_dqn.runner.train_dqn] Learning started
    """

    def format(self, record: logging.LogRecord) -> str:
        lvl = _LEVEL_ABBREV.get(record.levelno, "?")
        ts = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        ms = int(record.msecs)
        msg = record.getMessage()
        return f"{lvl} {ts}.{ms:03d} [{record.name}] {msg}"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the package logger with compact formatting.

    Safe to call multiple times: existing handlers are replaced.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for h in logger.handlers[:]:
        logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(_TrainFormatter())
    logger.addHandler(handler)
    logger.propagate = False


def log_step_progress(
    step: int,
    total_steps: int,
    metrics: dict[str, Any] | None = None,
    logger_name: str = PACKAGE_LOGGER,
) -> None:
    """Log a one-line training progress message.

    Example output::

        I 2026-02-15 14:30:22.123 [prioritized_dqn] step 5000/100000 (5.0%) | loss=0.042 epsilon=0.95
    """
    pct = 100.0 * step / total_steps if total_steps > 0 else 0.0
    parts = [f"step {step}/{total_steps} ({pct:.1f}%)"]
    if metrics:
        kv = " ".join(
            f"{k}={_to_python(v):.4g}" if isinstance(_to_python(v), float) else f"{k}={_to_python(v)}"
            for k, v in metrics.items()
            if k not in ("step", "wall_time")
        )
        if kv:
            parts.append(kv)
    logging.getLogger(logger_name).info(" | ".join(parts))


# ---------------------------------------------------------------------------
# Core MetricsLogger
# ---------------------------------------------------------------------------


class MetricsLogger:
    """Append-only JSONL logger.

    Parameters
    ----------
    path:
        Path to the JSONL file.  Parent directories are created
        automatically.  An existing file is appended to, so a resumed
        run continues the same log.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: IO[str] = open(self._path, "a")  # noqa: SIM115
        self._start_time = time.monotonic()

    def write(self, record: dict[str, Any]) -> None:
        """Write a single metrics record as one JSON line.

        Adds ``wall_time`` (seconds since logger creation) if not already
        present.  JAX/numpy scalars are converted to Python numbers.
        """
        row = {k: _to_python(v) for k, v in record.items()}
        if "wall_time" not in row:
            row["wall_time"] = round(time.monotonic() - self._start_time, 3)
        self._file.write(json.dumps(row, default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> MetricsLogger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MetricsLogger({self._path})"


def read_metrics(path: str | Path) -> list[dict[str, Any]]:
    """Read all records from a JSONL metrics file."""
    p = Path(path)
    if not p.exists():
        return []
    records = []
    for line in p.read_text().splitlines():
        line = line.strip()
        if line:
            records.append(json.loads(line))
    return records


def _to_python(val: Any) -> Any:
    """Convert JAX/numpy scalars to plain Python types for JSON."""
    if isinstance(val, (jnp.ndarray, np.ndarray)):
        return val.item()
    if isinstance(val, (np.integer, np.floating)):
        return val.item()
    return val
