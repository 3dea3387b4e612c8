"""Runner configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunnerConfig:
    """Outer-loop settings: budget, validation, experiment directory.

    Algorithm and replay-memory settings live in ``DQNConfig``.
    """

    # Training budget
    total_steps: int = 5_000_000

    # Progress and validation
    progress_freq: int = 10_000
    val_freq: int = 250_000
    val_steps: int = 125_000
    val_size: int = 500  # transitions in the fixed validation set
    verbose: bool = False  # log every training episode

    # Game
    random_starts: int = 0  # no-op actions at the start of training episodes
    max_episode_steps: int = 0  # 0 = episodes end only when the game does

    # Seeding / backend
    seed: int = 123
    device: str = "cpu"  # cpu | gpu | tpu

    # Experiment directory
    experiment_id: str | None = None  # defaults to the env id
    base_dir: str = "experiments"
    network: str | None = None  # params to load (checkpoint dir or .eqx file)
    resume: bool = False  # continue from checkpoints/latest if present

    def __post_init__(self) -> None:
        for name in ("total_steps", "progress_freq", "val_freq", "val_steps", "val_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.random_starts < 0 or self.max_episode_steps < 0:
            raise ValueError("random_starts and max_episode_steps must be non-negative")
