"""Equinox-based checkpointing for Q-networks and the training step.

A training checkpoint is a directory holding two files::

    step_50000/
    ├── params.eqx    # policy network leaves (eqx.tree_serialise_leaves)
    └── step.json     # {"step": 50000}

Both are written into a temporary sibling directory which is then renamed
into place, so a checkpoint directory either contains both files or does
not exist.

Usage::

    from prioritized_dqn.checkpoint import save_training_state, load_training_state

    save_training_state(run.checkpoints / "step_100", state.params, step=100)
    params, step = load_training_state(run.checkpoints / "step_100", like=state.params)
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, TypeVar

import equinox as eqx

from prioritized_dqn.errors import CheckpointError

T = TypeVar("T")

logger = logging.getLogger(__name__)

PARAMS_FILE = "params.eqx"
STEP_FILE = "step.json"


# ---------------------------------------------------------------------------
# Low-level: Equinox serialization
# ---------------------------------------------------------------------------


def save_eqx(path: str | Path, pytree: Any) -> Path:
    """Save a pytree using Equinox's built-in serialization.

    Parameters
    ----------
    path:
        File path for the checkpoint (conventionally ``*.eqx``).
    pytree:
        The pytree to save.

    Returns
    -------
    The path that was written.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    eqx.tree_serialise_leaves(str(p), pytree)
    return p


def load_eqx(path: str | Path, like: T) -> T:
    """Load a pytree saved with :func:`save_eqx`.

    Parameters
    ----------
    path:
        Path to the checkpoint file.
    like:
        A pytree with the same structure (shapes, dtypes) as the saved
        data, typically a freshly-initialized network.

    Raises
    ------
    FileNotFoundError:
        If *path* does not exist.
    CheckpointError:
        If the file cannot be deserialised into *like*.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"No checkpoint file at {p}")
    try:
        return eqx.tree_deserialise_leaves(str(p), like)
    except (OSError, EOFError, ValueError, RuntimeError) as e:
        raise CheckpointError(f"Could not load {p}: {e}") from e


# ---------------------------------------------------------------------------
# Training state: params + step, written atomically
# ---------------------------------------------------------------------------


def save_training_state(directory: str | Path, params: Any, *, step: int) -> Path:
    """Write ``params.eqx`` and ``step.json`` into *directory* atomically.

    An existing checkpoint at *directory* is replaced.

    Returns
    -------
    The checkpoint directory.
    """
    d = Path(directory)
    d.parent.mkdir(parents=True, exist_ok=True)
    tmp = d.with_name(f".{d.name}.tmp")
    if tmp.exists():
        shutil.rmtree(tmp)
    tmp.mkdir()

    save_eqx(tmp / PARAMS_FILE, params)
    (tmp / STEP_FILE).write_text(json.dumps({"step": int(step)}) + "\n")

    if d.exists():
        old = d.with_name(f".{d.name}.old")
        if old.exists():
            shutil.rmtree(old)
        os.replace(d, old)
        os.replace(tmp, d)
        shutil.rmtree(old)
    else:
        os.replace(tmp, d)

    logger.debug("Saved checkpoint %s (step %d)", d, step)
    return d


def load_step(directory: str | Path) -> int:
    """Read the step counter stored next to the parameters.

    Raises
    ------
    CheckpointError:
        If ``step.json`` is missing or malformed.
    """
    path = Path(directory) / STEP_FILE
    try:
        return int(json.loads(path.read_text())["step"])
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise CheckpointError(f"Could not read step from {path}: {e}") from e


def load_training_state(directory: str | Path, like: T) -> tuple[T, int]:
    """Load ``(params, step)`` written by :func:`save_training_state`.

    Raises
    ------
    FileNotFoundError:
        If *directory* does not exist.
    CheckpointError:
        If either file is missing or unreadable.
    """
    d = Path(directory)
    if not d.is_dir():
        raise FileNotFoundError(f"No checkpoint directory at {d}")
    if not (d / PARAMS_FILE).is_file():
        raise CheckpointError(f"Checkpoint {d} has no {PARAMS_FILE}")
    params = load_eqx(d / PARAMS_FILE, like)
    return params, load_step(d)


def load_params(path: str | Path, like: T) -> T:
    """Load network parameters from a checkpoint directory or a ``.eqx`` file."""
    p = Path(path)
    if p.is_dir():
        p = p / PARAMS_FILE
    return load_eqx(p, like)
