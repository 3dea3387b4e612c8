"""Tests for preset configuration registry and CLI."""

from __future__ import annotations

import pytest

from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.configs.presets import PRESETS, TrainConfig, cli
from prioritized_dqn.env import make


class TestPresetRegistry:
    """Verify that all presets are well-formed."""

    @pytest.mark.parametrize("name", list(PRESETS.keys()))
    def test_preset_structure(self, name: str) -> None:
        desc, config = PRESETS[name]
        assert isinstance(desc, str) and len(desc) > 0
        assert isinstance(config, TrainConfig)
        assert isinstance(config.dqn, DQNConfig)
        make(config.env_id)

    def test_expected_presets_exist(self) -> None:
        assert {"catch_dqn", "catch_rank", "catch_dueling"} <= set(PRESETS)

    def test_rank_preset_prioritises(self) -> None:
        _, config = PRESETS["catch_rank"]
        assert config.dqn.priority_mode == "rank"
        assert config.dqn.double_q


class TestCLI:
    """Verify overridable_config_cli integration."""

    def test_select_preset(self) -> None:
        config = cli(["catch_dueling"])
        assert config.env_id == "Catch-v0"
        assert config.dqn.dueling
        assert config.mode == "train"

    def test_override_dqn_field(self) -> None:
        config = cli(["catch_rank", "--dqn.lr", "1e-3"])
        assert config.dqn.lr == pytest.approx(1e-3)

    def test_multiple_overrides(self) -> None:
        config = cli([
            "catch_dqn",
            "--dqn.batch_size", "64",
            "--runner.total_steps", "20000",
            "--runner.seed", "42",
            "--mode", "eval",
        ])
        assert config.dqn.batch_size == 64
        assert config.runner.total_steps == 20_000
        assert config.runner.seed == 42
        assert config.mode == "eval"

    def test_preset_defaults_preserved_without_override(self) -> None:
        config = cli(["catch_rank"])
        _, preset = PRESETS["catch_rank"]
        assert config.dqn == preset.dqn
        assert config.runner == preset.runner

    def test_unknown_preset_raises(self) -> None:
        with pytest.raises(SystemExit):
            cli(["nonexistent_preset"])
