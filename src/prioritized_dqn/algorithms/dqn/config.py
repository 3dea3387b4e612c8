"""DQN hyperparameters."""

from __future__ import annotations

from dataclasses import dataclass

from prioritized_dqn.errors import InvalidPriorityMode
from prioritized_dqn.replay.sampler import PRIORITY_MODES


@dataclass(frozen=True)
class DQNConfig:
    """All DQN and replay-memory hyperparameters in one place.

    Frozen dataclass: safe to pass into jitted functions as a static
    argument (via ``functools.partial`` or ``jax.jit(..., static_argnums=...)``).
    """

    # Network
    hidden_sizes: tuple[int, ...] = (128, 128)
    dueling: bool = False

    # Optimization
    optimiser: str = "adam"  # adam | rmsprop | sgd
    lr: float = 7e-5
    momentum: float = 0.95
    gamma: float = 0.99
    batch_size: int = 32
    max_grad_norm: float = 10.0

    # Targets
    double_q: bool = True
    reward_clip: float = 1.0  # 0 disables
    td_clip: float = 1.0  # 0 disables
    pal_alpha: float = 0.0  # persistent advantage learning, 0 disables

    # Target network
    tau: int = 30_000

    # Learning schedule
    learn_start: int = 50_000
    sample_freq: int = 4
    n_replay: int = 1  # learning steps per sample

    # Exploration
    epsilon_start: float = 1.0
    epsilon_end: float = 0.01
    epsilon_steps: int = 1_000_000
    eval_epsilon: float = 0.001

    # Experience replay
    memory_size: int = 1_000_000
    priority_mode: str = "none"  # none | rank | proportional
    alpha: float = 0.65
    beta_zero: float = 0.45
    priority_eps: float = 1e-6
    rebalance_interval: int = 100_000
    partition_refresh: float = 0.01

    def __post_init__(self) -> None:
        if self.priority_mode not in PRIORITY_MODES:
            raise InvalidPriorityMode(self.priority_mode)
        if self.optimiser not in ("adam", "rmsprop", "sgd"):
            raise ValueError(f"Unknown optimiser {self.optimiser!r}")
        for name in ("batch_size", "memory_size", "tau", "sample_freq", "n_replay"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.batch_size > self.memory_size:
            raise ValueError(
                f"batch_size ({self.batch_size}) exceeds memory_size ({self.memory_size})"
            )
        if self.learn_start < self.batch_size:
            raise ValueError(
                f"learn_start ({self.learn_start}) must be at least "
                f"batch_size ({self.batch_size})"
            )
        if self.reward_clip < 0 or self.td_clip < 0:
            raise ValueError("reward_clip and td_clip must be non-negative")
