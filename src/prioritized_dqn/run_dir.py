"""Output directory management for experiments.

``RunDir`` creates and exposes the standard layout of one experiment::

    experiments/
    └── catch_rank/
        ├── config.json
        ├── checkpoints/
        │   ├── step_40000/
        │   ├── step_60000/
        │   ├── best -> step_40000
        │   └── latest -> step_60000
        └── logs/
            └── metrics.jsonl

Usage::

    run = RunDir("catch_rank", base_dir="experiments")
    run.save_config(config)            # snapshot frozen dataclass / dict
    run.checkpoint_dir(step=60000)     # checkpoints/step_60000
    run.mark("latest", step=60000)     # repoint the symlink
    run.resolve("latest")              # -> checkpoints/step_60000 or None
"""

from __future__ import annotations

import dataclasses
import json
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

MARKERS = ("best", "latest")


def _timestamp() -> str:
    return datetime.now(tz=UTC).strftime("%Y%m%d_%H%M%S")


class RunDir:
    """A lightweight handle for a single experiment's output directory.

    Parameters
    ----------
    experiment_id:
        Directory name under *base_dir*.  When ``None`` a UTC timestamp
        is used.  Reusing an id reopens the same directory (for resuming).
    base_dir:
        Parent directory for all experiments.
    """

    def __init__(
        self,
        experiment_id: str | None = None,
        base_dir: str | Path = "experiments",
    ) -> None:
        self._base_dir = Path(base_dir)
        self._root = self._base_dir / (experiment_id or _timestamp())

        for subdir in ("checkpoints", "logs"):
            (self._root / subdir).mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Core path properties
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        return self._root

    @property
    def name(self) -> str:
        return self._root.name

    @property
    def checkpoints(self) -> Path:
        return self._root / "checkpoints"

    @property
    def logs(self) -> Path:
        return self._root / "logs"

    def checkpoint_dir(self, step: int) -> Path:
        """Return ``checkpoints/step_{step}/`` (not created)."""
        return self.checkpoints / f"step_{step}"

    def log_path(self, filename: str = "metrics.jsonl") -> Path:
        return self.logs / filename

    # ------------------------------------------------------------------
    # Config snapshot
    # ------------------------------------------------------------------

    def save_config(self, config: Any, filename: str = "config.json") -> Path:
        """Serialize *config* to JSON in the run root.

        Accepts frozen dataclasses or plain dicts.
        """
        path = self._root / filename
        data = _config_to_dict(config)
        path.write_text(json.dumps(data, indent=2, default=str) + "\n")
        return path

    def load_config(self, filename: str = "config.json") -> dict[str, Any]:
        return json.loads((self._root / filename).read_text())

    # ------------------------------------------------------------------
    # best / latest symlinks
    # ------------------------------------------------------------------

    def mark(self, name: str, step: int) -> Path:
        """Point ``checkpoints/{name}`` at ``step_{step}/``.

        The link is replaced atomically: a temporary link is written and
        renamed over the old one.
        """
        if name not in MARKERS:
            raise ValueError(f"Unknown checkpoint marker {name!r}; expected one of {MARKERS}")
        link = self.checkpoints / name
        tmp_link = link.with_suffix(".tmp")
        tmp_link.unlink(missing_ok=True)
        tmp_link.symlink_to(f"step_{step}")
        tmp_link.rename(link)
        return link

    def resolve(self, name: str) -> Path | None:
        """Checkpoint directory behind marker *name*, or ``None``."""
        link = self.checkpoints / name
        if link.is_symlink() and link.resolve().is_dir():
            return link.resolve()
        return None

    # ------------------------------------------------------------------
    # Checkpoint cleanup
    # ------------------------------------------------------------------

    def list_checkpoints(self) -> list[tuple[int, Path]]:
        """Return sorted ``(step, path)`` pairs for all step checkpoints."""
        result: list[tuple[int, Path]] = []
        for entry in self.checkpoints.iterdir():
            if entry.is_dir() and not entry.is_symlink() and entry.name.startswith("step_"):
                try:
                    result.append((int(entry.name.split("_", 1)[1]), entry))
                except ValueError:
                    continue
        result.sort()
        return result

    def cleanup_checkpoints(self) -> list[Path]:
        """Delete step checkpoints that no marker points to.

        Returns the list of removed directories.
        """
        keep = {p for p in (self.resolve(m) for m in MARKERS) if p is not None}
        removed: list[Path] = []
        for _, path in self.list_checkpoints():
            if path.resolve() not in keep:
                shutil.rmtree(path)
                removed.append(path)
        return removed

    def __repr__(self) -> str:
        return f"RunDir({self._root})"

    def __fspath__(self) -> str:
        return str(self._root)


def _config_to_dict(obj: Any) -> Any:
    """Recursively convert a config object to plain JSON-able values."""
    if isinstance(obj, dict):
        return {k: _config_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: _config_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (list, tuple)):
        return [_config_to_dict(v) for v in obj]
    return obj
