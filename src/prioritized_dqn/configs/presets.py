"""Preset experiment configurations.

Each preset bundles a game, DQN config and runner settings tuned for a
specific experiment.  Use :func:`cli` in a training script to get a
:class:`TrainConfig` with ``overridable_config_cli``: the user picks a
preset and optionally overrides individual fields::

    python scripts/train.py catch_rank --dqn.lr 1e-3
    python scripts/train.py catch_dqn --runner.total_steps 200000
    python scripts/train.py catch_rank --mode eval --runner.network experiments/Catch/checkpoints/best
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import tyro

from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.runner.config import RunnerConfig

# ---------------------------------------------------------------------------
# Unified training config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrainConfig:
    """Full configuration: game + DQN + runner."""

    # Game (a name registered in ``prioritized_dqn.env``)
    env_id: str = "Catch-v0"

    # train: full training run; eval: play one greedy episode
    mode: Literal["train", "eval"] = "train"

    dqn: DQNConfig = field(default_factory=DQNConfig)

    runner: RunnerConfig = field(default_factory=RunnerConfig)


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

# Catch is small: memory, exploration, target period and learning start are
# a tenth of the Atari-scale defaults and the learning rate is 100x larger.
_CATCH_RUNNER = RunnerConfig(
    total_steps=1_000_000,
    progress_freq=10_000,
    val_freq=25_000,
    val_steps=12_500,
    val_size=500,
)

PRESETS: dict[str, tuple[str, TrainConfig]] = {
    "catch_dqn": (
        "DQN on Catch-v0 with uniform replay",
        TrainConfig(
            env_id="Catch-v0",
            dqn=DQNConfig(
                hidden_sizes=(64, 64),
                lr=7e-3,
                memory_size=100_000,
                epsilon_steps=100_000,
                tau=3_000,
                learn_start=5_000,
                double_q=False,
                priority_mode="none",
            ),
            runner=_CATCH_RUNNER,
        ),
    ),
    "catch_rank": (
        "Double DQN on Catch-v0 with rank-based prioritised replay",
        TrainConfig(
            env_id="Catch-v0",
            dqn=DQNConfig(
                hidden_sizes=(64, 64),
                lr=7e-3,
                memory_size=100_000,
                epsilon_steps=100_000,
                tau=3_000,
                learn_start=5_000,
                double_q=True,
                priority_mode="rank",
                rebalance_interval=10_000,
            ),
            runner=_CATCH_RUNNER,
        ),
    ),
    "catch_dueling": (
        "Dueling Double DQN + persistent advantage learning on Catch-v0",
        TrainConfig(
            env_id="Catch-v0",
            dqn=DQNConfig(
                hidden_sizes=(64, 64),
                dueling=True,
                lr=7e-3,
                memory_size=100_000,
                epsilon_steps=100_000,
                tau=3_000,
                learn_start=5_000,
                double_q=True,
                pal_alpha=0.9,
                priority_mode="rank",
                rebalance_interval=10_000,
            ),
            runner=_CATCH_RUNNER,
        ),
    ),
}


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def cli(
    args: list[str] | None = None,
    **kwargs: object,
) -> TrainConfig:
    """Parse a preset + overrides from the command line.

    Usage::

        config = cli()                                   # parse sys.argv
        config = cli(["catch_rank", "--dqn.lr", "1e-3"])  # explicit args
    """
    return tyro.extras.overridable_config_cli(
        PRESETS,
        args=args,
        use_underscores=True,
        **kwargs,  # type: ignore[arg-type]
    )
