"""Tests for the Catch environment and the env registry."""

import jax
import jax.numpy as jnp
import pytest

from prioritized_dqn.env import Catch, CatchParams, make, register
from prioritized_dqn.env.spaces import Box, Discrete


@pytest.fixture
def env():
    return Catch()


@pytest.fixture
def params(env):
    return env.default_params()


def _track(state) -> int:
    if state.ball_col < state.paddle_col:
        return 0
    if state.ball_col > state.paddle_col:
        return 2
    return 1


class TestCatch:
    def test_reset_observation(self, env, params):
        obs, state = env.reset(jax.random.key(0), params)
        assert obs.shape == (10, 5, 1)
        assert obs.dtype == jnp.float32
        assert int(jnp.sum(obs)) == 4
        assert obs[0, int(state.ball_col), 0] == 1.0
        assert int(state.time) == 0

    def test_observation_in_space(self, env, params):
        obs, _ = env.reset(jax.random.key(1), params)
        assert bool(env.observation_space(params).contains(obs))

    def test_episode_length(self, env, params):
        key = jax.random.key(2)
        _, state = env.reset(key, params)
        for t in range(1, 10):
            _, state, reward, done, _ = env.step(key, state, 1, params)
            assert bool(done) == (t == 9)
            if t < 9:
                assert float(reward) == 0.0
        assert abs(float(reward)) == 1.0

    def test_tracking_policy_catches(self, env, params):
        for seed in range(5):
            key = jax.random.key(seed)
            _, state = env.reset(key, params)
            done = False
            while not done:
                _, state, reward, done, info = env.step(key, state, _track(state), params)
            assert float(reward) == 1.0
            assert bool(info["caught"])

    def test_paddle_clipped_to_board(self, env, params):
        key = jax.random.key(0)
        _, state = env.reset(key, params)
        for _ in range(4):
            _, state, _, _, _ = env.step(key, state, 0, params)
        assert int(state.paddle_col) == 1
        for _ in range(4):
            _, state, _, _, _ = env.step(key, state, 2, params)
        assert int(state.paddle_col) == params.columns - 2

    def test_custom_board(self, env):
        params = CatchParams(rows=6, columns=7)
        obs, _ = env.reset(jax.random.key(0), params)
        assert obs.shape == (6, 7, 1)

    def test_jit_step(self, env, params):
        step = jax.jit(env.step)
        key = jax.random.key(0)
        _, state = env.reset(key, params)
        obs, state, _, _, _ = step(key, state, jnp.int32(2), params)
        assert int(state.paddle_col) == 3
        assert int(jnp.sum(obs)) == 4

    def test_spaces(self, env, params):
        assert isinstance(env.action_space(params), Discrete)
        assert env.action_space(params).n == 3
        assert env.action_space(params).actions == [0, 1, 2]
        assert isinstance(env.observation_space(params), Box)
        assert env.noop_action == 1


class TestRegistry:
    def test_make(self):
        env, params = make("Catch-v0")
        assert isinstance(env, Catch)
        assert isinstance(params, CatchParams)

    def test_unknown(self):
        with pytest.raises(KeyError, match="Catch-v0"):
            make("Pong-v0")

    def test_register(self):
        class BigCatch(Catch):
            def default_params(self):
                return CatchParams(rows=12)

        register("BigCatch-v0", BigCatch)
        _, params = make("BigCatch-v0")
        assert params.rows == 12
