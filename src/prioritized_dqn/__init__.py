"""prioritized_dqn: Double DQN with rank-based prioritised replay in JAX."""

from prioritized_dqn.algorithms.dqn import DQN, DQNConfig, DQNState
from prioritized_dqn.checkpoint import (
    load_eqx,
    load_training_state,
    save_eqx,
    save_training_state,
)
from prioritized_dqn.env import Game, make
from prioritized_dqn.errors import (
    CheckpointError,
    IndexOutOfRange,
    InsufficientExperience,
    InvalidPriorityMode,
    ReplayError,
)
from prioritized_dqn.metrics import MetricsLogger
from prioritized_dqn.replay import ExperienceReplay
from prioritized_dqn.run_dir import RunDir
from prioritized_dqn.schedule import ExplorationSchedule, select_action
from prioritized_dqn.seeding import make_np_rng, make_rng, split_key
from prioritized_dqn.types import Transition

__all__ = [
    "CheckpointError",
    "DQN",
    "DQNConfig",
    "DQNState",
    "ExperienceReplay",
    "ExplorationSchedule",
    "Game",
    "IndexOutOfRange",
    "InsufficientExperience",
    "InvalidPriorityMode",
    "MetricsLogger",
    "ReplayError",
    "RunDir",
    "Transition",
    "load_eqx",
    "load_training_state",
    "make",
    "make_np_rng",
    "make_rng",
    "save_eqx",
    "save_training_state",
    "select_action",
    "split_key",
]
