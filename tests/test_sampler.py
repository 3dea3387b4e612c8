"""Tests for minibatch sampling policies."""

import logging

import numpy as np
import pytest

from prioritized_dqn.errors import InsufficientExperience, InvalidPriorityMode
from prioritized_dqn.replay.priority_index import RankPriorityIndex
from prioritized_dqn.replay.sampler import PrioritizedSampler, resolve_priority_mode
from prioritized_dqn.replay.transition_store import TransitionStore


def _make(capacity: int, n: int, *, mode: str, alpha: float, rng, priorities=None):
    store = TransitionStore(capacity, (2,))
    index = RankPriorityIndex(capacity)
    for i in range(n):
        slot = store.store(np.full(2, i), 0, 0.0, np.full(2, i), False)
        index.insert(slot, 1.0 if priorities is None else float(priorities[i]))
    sampler = PrioritizedSampler(store, index, mode=mode, alpha=alpha, rng=rng)
    return store, index, sampler


class TestResolvePriorityMode:
    @pytest.mark.parametrize("mode", ["none", "rank"])
    def test_passthrough(self, mode):
        assert resolve_priority_mode(mode) == mode

    def test_proportional_downgrades_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="prioritized_dqn"):
            assert resolve_priority_mode("proportional") == "rank"
        assert "switching to rank-based" in caplog.text

    def test_unknown_mode_raises(self):
        with pytest.raises(InvalidPriorityMode) as exc_info:
            resolve_priority_mode("sumtree")
        assert exc_info.value.mode == "sumtree"

    def test_unknown_mode_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_priority_mode("")

    def test_sampler_rejects_unresolved_mode(self, np_rng):
        with pytest.raises(InvalidPriorityMode):
            _make(8, 0, mode="proportional", alpha=0.5, rng=np_rng)


class TestUniformSampling:
    def test_distinct_indices_unit_weights(self, np_rng):
        _, _, sampler = _make(50, 20, mode="none", alpha=0.65, rng=np_rng)
        for _ in range(10):
            batch = sampler.sample(8, beta=0.5)
            assert len(set(batch.indices.tolist())) == 8
            assert np.all((batch.indices >= 0) & (batch.indices < 20))
            assert np.array_equal(batch.weights, np.ones(8, dtype=np.float32))

    def test_insufficient_experience(self, np_rng):
        _, _, sampler = _make(50, 3, mode="none", alpha=0.65, rng=np_rng)
        with pytest.raises(InsufficientExperience) as exc_info:
            sampler.sample(4, beta=1.0)
        assert exc_info.value.available == 3
        assert exc_info.value.batch_size == 4


class TestRankSampling:
    def test_weights_in_unit_interval_with_max_one(self, np_rng):
        priorities = np_rng.random(200) + 0.01
        _, _, sampler = _make(256, 200, mode="rank", alpha=0.7, rng=np_rng, priorities=priorities)
        for beta in (0.0, 0.45, 1.0):
            batch = sampler.sample(16, beta)
            assert batch.weights.dtype == np.float32
            assert np.all(batch.weights > 0)
            assert np.all(batch.weights <= 1.0)
            assert batch.weights.max() == pytest.approx(1.0)

    def test_beta_zero_gives_unit_weights(self, np_rng):
        _, _, sampler = _make(64, 64, mode="rank", alpha=0.7, rng=np_rng)
        batch = sampler.sample(8, beta=0.0)
        assert np.allclose(batch.weights, 1.0)

    def test_stamps_match_store(self, np_rng):
        store, _, sampler = _make(64, 40, mode="rank", alpha=0.7, rng=np_rng)
        batch = sampler.sample(8, beta=1.0)
        assert np.array_equal(batch.stamps, store.stamps(batch.indices))

    def test_insufficient_experience(self, np_rng):
        _, _, sampler = _make(64, 7, mode="rank", alpha=0.7, rng=np_rng)
        with pytest.raises(InsufficientExperience):
            sampler.sample(8, beta=1.0)

    def test_alpha_zero_samples_uniformly(self):
        """100 distinct priorities, alpha=0: every index has frequency ~1/100."""
        rng = np.random.default_rng(123)
        priorities = np.arange(1, 101, dtype=np.float64)
        _, _, sampler = _make(100, 100, mode="rank", alpha=0.0, rng=rng, priorities=priorities)

        counts = np.zeros(100, dtype=np.int64)
        for _ in range(1000):
            batch = sampler.sample(4, beta=0.45)
            counts[batch.indices] += 1
            assert np.allclose(batch.weights, 1.0)

        assert counts.sum() == 4000
        # Expected 40 per index; binomial(1000, 1/25) has std ~6.2.
        assert counts.min() >= 15
        assert counts.max() <= 65

    def test_high_priority_sampled_more_often(self):
        rng = np.random.default_rng(7)
        priorities = np.ones(100)
        priorities[37] = 100.0
        _, _, sampler = _make(100, 100, mode="rank", alpha=0.7, rng=rng, priorities=priorities)
        hits = sum(37 in sampler.sample(8, beta=1.0).indices for _ in range(500))
        # Uniform sampling would include it with probability 0.08.
        assert hits / 500 > 0.3

    def test_partition_cached_until_growth(self, np_rng):
        store, index, sampler = _make(1000, 200, mode="rank", alpha=0.7, rng=np_rng)
        first = sampler.partition(8)
        assert sampler.partition(8) is first

        slot = store.store(np.zeros(2), 0, 0.0, np.zeros(2), False)
        index.insert(slot, 1.0)
        assert sampler.partition(8) is first  # 0.5% growth

        for _ in range(5):
            slot = store.store(np.zeros(2), 0, 0.0, np.zeros(2), False)
            index.insert(slot, 1.0)
        rebuilt = sampler.partition(8)
        assert rebuilt is not first
        assert rebuilt.size == 206

    def test_partition_rebuilt_for_new_batch_size(self, np_rng):
        _, _, sampler = _make(100, 100, mode="rank", alpha=0.7, rng=np_rng)
        assert sampler.partition(8).batch_size == 8
        assert sampler.partition(4).batch_size == 4
