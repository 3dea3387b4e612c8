"""Tests for Equinox checkpointing."""

import jax
import jax.numpy as jnp
import pytest

from prioritized_dqn.algorithms.dqn.network import QNetwork
from prioritized_dqn.checkpoint import (
    PARAMS_FILE,
    STEP_FILE,
    load_eqx,
    load_params,
    load_step,
    load_training_state,
    save_eqx,
    save_training_state,
)
from prioritized_dqn.errors import CheckpointError


def _net(seed: int) -> QNetwork:
    return QNetwork(4, 2, (8,), key=jax.random.key(seed))


def _same(a: QNetwork, b: QNetwork) -> bool:
    return all(
        jnp.array_equal(x, y) for x, y in zip(jax.tree.leaves(a), jax.tree.leaves(b))
    )


class TestEqx:
    def test_roundtrip(self, tmp_path):
        net = _net(0)
        path = save_eqx(tmp_path / "sub" / "net.eqx", net)
        assert path.is_file()
        assert _same(load_eqx(path, _net(1)), net)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_eqx(tmp_path / "nope.eqx", _net(0))

    def test_wrong_structure(self, tmp_path):
        path = save_eqx(tmp_path / "net.eqx", _net(0))
        bigger = QNetwork(4, 2, (8, 8, 8), key=jax.random.key(0))
        with pytest.raises(CheckpointError):
            load_eqx(path, bigger)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "net.eqx"
        path.write_bytes(b"not a checkpoint")
        with pytest.raises(CheckpointError):
            load_eqx(path, _net(0))


class TestTrainingState:
    def test_roundtrip(self, tmp_path):
        net = _net(0)
        d = save_training_state(tmp_path / "step_100", net, step=100)
        assert (d / PARAMS_FILE).is_file()
        assert (d / STEP_FILE).is_file()
        params, step = load_training_state(d, _net(1))
        assert step == 100
        assert _same(params, net)

    def test_overwrite_existing(self, tmp_path):
        d = tmp_path / "step_5"
        save_training_state(d, _net(0), step=5)
        save_training_state(d, _net(2), step=6)
        params, step = load_training_state(d, _net(1))
        assert step == 6
        assert _same(params, _net(2))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["step_5"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_training_state(tmp_path / "step_1", _net(0))

    def test_missing_params(self, tmp_path):
        d = tmp_path / "step_1"
        d.mkdir()
        with pytest.raises(CheckpointError):
            load_training_state(d, _net(0))

    def test_malformed_step(self, tmp_path):
        d = save_training_state(tmp_path / "step_1", _net(0), step=1)
        (d / STEP_FILE).write_text("{}")
        with pytest.raises(CheckpointError):
            load_step(d)

    def test_load_params_from_dir_or_file(self, tmp_path):
        net = _net(0)
        d = save_training_state(tmp_path / "step_1", net, step=1)
        assert _same(load_params(d, _net(1)), net)
        assert _same(load_params(d / PARAMS_FILE, _net(1)), net)
