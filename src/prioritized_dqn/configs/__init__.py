"""Preset configuration registry for prioritized_dqn experiments."""

from prioritized_dqn.configs.presets import PRESETS, TrainConfig, cli

__all__ = [
    "PRESETS",
    "TrainConfig",
    "cli",
]
