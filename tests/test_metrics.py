"""Tests for the JSONL metrics logger and console logging helpers."""

import logging

import jax.numpy as jnp
import numpy as np
import pytest

from prioritized_dqn.metrics import (
    PACKAGE_LOGGER,
    MetricsLogger,
    log_step_progress,
    read_metrics,
    setup_logging,
)


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestMetricsLogger:
    def test_write_and_read(self, tmp_path):
        path = tmp_path / "logs" / "metrics.jsonl"
        with MetricsLogger(path) as metrics:
            metrics.write({"step": 1, "loss": jnp.float32(0.5)})
            metrics.write({"step": 2, "score": np.int64(3), "avg_v": np.float64(1.25)})

        records = read_metrics(path)
        assert len(records) == 2
        assert records[0]["step"] == 1
        assert records[0]["loss"] == pytest.approx(0.5)
        assert records[1]["score"] == 3
        assert records[1]["avg_v"] == 1.25
        assert all("wall_time" in r for r in records)

    def test_appends_on_reopen(self, tmp_path):
        path = tmp_path / "metrics.jsonl"
        with MetricsLogger(path) as metrics:
            metrics.write({"step": 1})
        with MetricsLogger(path) as metrics:
            metrics.write({"step": 2})
        assert [r["step"] for r in read_metrics(path)] == [1, 2]

    def test_explicit_wall_time_kept(self, tmp_path):
        with MetricsLogger(tmp_path / "m.jsonl") as metrics:
            metrics.write({"wall_time": 7.0})
        assert read_metrics(tmp_path / "m.jsonl")[0]["wall_time"] == 7.0

    def test_read_missing(self, tmp_path):
        assert read_metrics(tmp_path / "none.jsonl") == []


class TestConsoleLogging:
    def test_setup_logging_idempotent(self, restore_package_logger):
        setup_logging(logging.DEBUG)
        setup_logging(logging.DEBUG)
        assert len(restore_package_logger.handlers) == 1
        assert restore_package_logger.level == logging.DEBUG

    def test_format(self, restore_package_logger, capsys):
        setup_logging()
        logging.getLogger(f"{PACKAGE_LOGGER}.runner").info("Learning started")
        err = capsys.readouterr().err
        assert err.startswith("I ")
        assert "[prioritized_dqn.runner] Learning started" in err

    def test_log_step_progress(self, caplog):
        with caplog.at_level(logging.INFO, logger=PACKAGE_LOGGER):
            log_step_progress(500, 1000, {"step": 500, "loss": 0.123456, "episodes": 4})
        assert "step 500/1000 (50.0%)" in caplog.text
        assert "loss=0.1235" in caplog.text
        assert "episodes=4" in caplog.text
