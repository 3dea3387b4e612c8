from prioritized_dqn.algorithms.dqn.agent import DQN, LearnOutput
from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.algorithms.dqn.network import DuelingQNetwork, QNetwork, make_q_network
from prioritized_dqn.algorithms.dqn.optim import (
    Objective,
    Optimizer,
    TDObjective,
    make_optimizer,
)
from prioritized_dqn.algorithms.dqn.types import DQNState

__all__ = [
    "DQN",
    "DQNConfig",
    "DQNState",
    "DuelingQNetwork",
    "LearnOutput",
    "Objective",
    "Optimizer",
    "QNetwork",
    "TDObjective",
    "make_optimizer",
    "make_q_network",
]
