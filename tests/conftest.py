"""Root test configuration.

Pins JAX to the CPU *before* it is imported anywhere, so tests behave the
same on machines with and without accelerators.
"""

import os

os.environ.setdefault("JAX_PLATFORMS", "cpu")

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from prioritized_dqn.algorithms.dqn.config import DQNConfig  # noqa: E402
from prioritized_dqn.runner.config import RunnerConfig  # noqa: E402


@pytest.fixture
def np_rng():
    return np.random.default_rng(0)


@pytest.fixture
def small_dqn_config():
    """DQN settings small enough for a few hundred Catch steps."""
    return DQNConfig(
        hidden_sizes=(32, 32),
        lr=1e-3,
        batch_size=8,
        memory_size=500,
        learn_start=50,
        sample_freq=1,
        tau=20,
        epsilon_steps=100,
        priority_mode="rank",
        rebalance_interval=50,
    )


@pytest.fixture
def small_runner_config(tmp_path):
    return RunnerConfig(
        total_steps=200,
        progress_freq=50,
        val_freq=100,
        val_steps=30,
        val_size=20,
        seed=0,
        experiment_id="test",
        base_dir=str(tmp_path / "experiments"),
    )
