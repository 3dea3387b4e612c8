"""Experience replay for off-policy DQN training.

Core types:
    - TransitionStore: numpy-backed circular buffer with jax.Array reads
    - RankPriorityIndex / RankPartition: rank-ordered priorities
    - PrioritizedSampler: uniform or rank-based minibatch sampling
    - ExperienceReplay: the three combined behind one interface
"""

from prioritized_dqn.replay.memory import ExperienceReplay
from prioritized_dqn.replay.priority_index import RankPartition, RankPriorityIndex
from prioritized_dqn.replay.sampler import (
    PRIORITY_MODES,
    PrioritizedSampler,
    SampleBatch,
    resolve_priority_mode,
)
from prioritized_dqn.replay.transition_store import TransitionStore

__all__ = [
    "ExperienceReplay",
    "PRIORITY_MODES",
    "PrioritizedSampler",
    "RankPartition",
    "RankPriorityIndex",
    "SampleBatch",
    "TransitionStore",
    "resolve_priority_mode",
]
