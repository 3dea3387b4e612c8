"""Tests for the stateful Game adapter."""

import numpy as np
import pytest

from prioritized_dqn.env import Catch, Game


class TestGame:
    def test_make_and_shapes(self):
        game = Game.make("Catch-v0", seed=0)
        assert game.observation_shape == (10, 5, 1)
        assert game.get_actions() == [0, 1, 2]

    def test_start_and_step(self):
        game = Game.make("Catch-v0", seed=0)
        obs = game.start()
        assert isinstance(obs, np.ndarray)
        assert obs.shape == (10, 5, 1)

        steps = 0
        terminal = False
        while not terminal:
            obs, reward, terminal = game.step(1)
            assert isinstance(reward, float)
            assert isinstance(terminal, bool)
            steps += 1
        assert steps == 9
        assert reward in (-1.0, 1.0)

    def test_step_before_start_raises(self):
        game = Game(Catch())
        with pytest.raises(RuntimeError):
            game.step(1)

    def test_step_after_terminal_raises(self):
        game = Game(Catch())
        game.start()
        for _ in range(9):
            game.step(1)
        with pytest.raises(RuntimeError):
            game.step(1)

    def test_max_episode_steps_only_in_training(self):
        game = Game(Catch(), max_episode_steps=3)
        game.start()
        assert [game.step(1)[2] for _ in range(3)] == [False, False, True]

        game.start()
        terminals = [game.step(1, training=False)[2] for _ in range(9)]
        assert terminals == [False] * 8 + [True]

    def test_random_starts_shorten_training_episodes(self):
        game = Game(Catch(), seed=1, random_starts=5)
        lengths = set()
        for _ in range(20):
            game.start()
            n, terminal = 0, False
            while not terminal:
                _, _, terminal = game.step(1)
                n += 1
            lengths.add(n)
        assert min(lengths) >= 4
        assert max(lengths) <= 9
        assert len(lengths) > 1

    def test_no_random_starts_in_evaluation(self):
        game = Game(Catch(), seed=1, random_starts=5)
        game.evaluate()
        obs = game.start()
        assert obs[0].sum() == 1.0  # ball still on the top row

    def test_seeded_resets_are_reproducible(self):
        a = Game(Catch(), seed=7)
        b = Game(Catch(), seed=7)
        for _ in range(3):
            assert np.array_equal(a.start(), b.start())

    def test_mode_switch(self):
        game = Game(Catch())
        game.evaluate()
        assert not game.is_training
        game.training()
        assert game.is_training
