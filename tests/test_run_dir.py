"""Tests for experiment directory management."""

from dataclasses import dataclass

import pytest

from prioritized_dqn.run_dir import RunDir


@dataclass(frozen=True)
class _Cfg:
    lr: float = 1e-3
    hidden: tuple[int, ...] = (32, 32)


def _make_ckpt(run: RunDir, step: int):
    d = run.checkpoint_dir(step)
    d.mkdir()
    (d / "params.eqx").write_bytes(b"x")
    return d


class TestRunDir:
    def test_layout(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        assert run.root == tmp_path / "exp"
        assert run.name == "exp"
        assert run.checkpoints.is_dir()
        assert run.logs.is_dir()
        assert run.log_path() == run.logs / "metrics.jsonl"
        assert run.checkpoint_dir(10).name == "step_10"
        assert not run.checkpoint_dir(10).exists()

    def test_timestamp_name(self, tmp_path):
        run = RunDir(base_dir=tmp_path)
        assert run.root.parent == tmp_path
        assert run.name[:8].isdigit()

    def test_reopen(self, tmp_path):
        RunDir("exp", base_dir=tmp_path)
        assert RunDir("exp", base_dir=tmp_path).checkpoints.is_dir()

    def test_config_roundtrip(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        run.save_config({"dqn": _Cfg(), "env_id": "Catch-v0"})
        assert run.load_config() == {
            "dqn": {"lr": 1e-3, "hidden": [32, 32]},
            "env_id": "Catch-v0",
        }


class TestMarkers:
    def test_mark_and_resolve(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        d = _make_ckpt(run, 10)
        link = run.mark("latest", 10)
        assert link.is_symlink()
        assert run.resolve("latest") == d.resolve()
        assert run.resolve("best") is None

    def test_repoint(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        _make_ckpt(run, 10)
        d20 = _make_ckpt(run, 20)
        run.mark("latest", 10)
        run.mark("latest", 20)
        assert run.resolve("latest") == d20.resolve()

    def test_unknown_marker(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        with pytest.raises(ValueError):
            run.mark("final", 1)

    def test_dangling_marker_resolves_none(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        run.mark("latest", 99)
        assert run.resolve("latest") is None


class TestCleanup:
    def test_list_checkpoints_sorted(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        for step in (30, 10, 20):
            _make_ckpt(run, step)
        (run.checkpoints / "step_bad").mkdir()
        assert [s for s, _ in run.list_checkpoints()] == [10, 20, 30]

    def test_keeps_marked(self, tmp_path):
        run = RunDir("exp", base_dir=tmp_path)
        for step in (10, 20, 30):
            _make_ckpt(run, step)
        run.mark("best", 10)
        run.mark("latest", 30)
        removed = run.cleanup_checkpoints()
        assert [p.name for p in removed] == ["step_20"]
        assert [s for s, _ in run.list_checkpoints()] == [10, 30]
