"""Training runner for prioritized_dqn.

**Hybrid** loop: a Python outer loop handles the game, the replay
memory, validation and checkpointing, with ``jax.jit``-compiled inner
steps for action selection and gradient updates.
"""

from prioritized_dqn.runner.agent import DQNAgent
from prioritized_dqn.runner.backend import select_device
from prioritized_dqn.runner.config import RunnerConfig
from prioritized_dqn.runner.interrupt import InterruptFlag
from prioritized_dqn.runner.train_dqn import (
    DQNTrainResult,
    ValidationResult,
    evaluate_episode,
    make_agent,
    train_dqn,
    validate,
)

__all__ = [
    "DQNAgent",
    "DQNTrainResult",
    "InterruptFlag",
    "RunnerConfig",
    "ValidationResult",
    "evaluate_episode",
    "make_agent",
    "select_device",
    "train_dqn",
    "validate",
]
