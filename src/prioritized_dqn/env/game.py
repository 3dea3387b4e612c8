"""Stateful host-side view of a functional environment.

The training loop talks to a game one step at a time::

    game = Game.make("Catch-v0", seed=0)
    obs = game.start()
    obs, reward, terminal = game.step(action, training=True)

``Game`` keeps the environment state and PRNG key, and runs the jitted
``reset``/``step`` of the wrapped :class:`Environment`.  Observations are
returned as NumPy arrays, rewards as ``float`` and terminals as ``bool``.
"""

from __future__ import annotations

import jax
import numpy as np

from prioritized_dqn.env.base import Environment, EnvParams, EnvState
from prioritized_dqn.seeding import make_rng, split_key


class Game:
    """Episode-at-a-time adapter around a pure-JAX environment.

    Args:
        env: The functional environment.
        params: Its parameters (defaults to ``env.default_params()``).
        seed: Seed for resets and environment randomness.
        random_starts: In training mode, each episode begins with a
            uniform number in ``[0, random_starts]`` of no-op actions.
        max_episode_steps: In training mode, episodes are cut (reported
            as terminal) after this many steps; ``0`` disables the cut.
    """

    def __init__(
        self,
        env: Environment,
        params: EnvParams | None = None,
        *,
        seed: int = 0,
        random_starts: int = 0,
        max_episode_steps: int = 0,
    ) -> None:
        self.env = env
        self.params = env.default_params() if params is None else params
        self.random_starts = random_starts
        self.max_episode_steps = max_episode_steps
        self.is_training = True

        self._rng = make_rng(seed)
        self._state: EnvState | None = None
        self._episode_steps = 0
        self._reset = jax.jit(env.reset)
        self._step = jax.jit(env.step)
        self._np_rng = np.random.default_rng(seed)

    @classmethod
    def make(cls, name: str, *, seed: int = 0, **kwargs: int) -> Game:
        """Build a game from a registered environment name."""
        from prioritized_dqn.env import make

        env, params = make(name)
        return cls(env, params, seed=seed, **kwargs)

    def training(self) -> None:
        self.is_training = True

    def evaluate(self) -> None:
        self.is_training = False

    def get_actions(self) -> list[int]:
        """Legal actions, indexed ``0 .. n_actions - 1``."""
        return self.env.action_space(self.params).actions

    @property
    def observation_shape(self) -> tuple[int, ...]:
        return tuple(self.env.observation_space(self.params).shape)

    def start(self) -> np.ndarray:
        """Begin a new episode and return its first observation."""
        self._rng, key = split_key(self._rng)
        obs, self._state = self._reset(key, self.params)
        self._episode_steps = 0

        if self.is_training and self.random_starts > 0:
            noop = np.int32(self.env.noop_action)
            for _ in range(int(self._np_rng.integers(0, self.random_starts + 1))):
                self._rng, key = split_key(self._rng)
                next_obs, state, _, done, _ = self._step(key, self._state, noop, self.params)
                if bool(done):
                    break
                obs, self._state = next_obs, state
        return np.asarray(obs)

    def step(self, action: int, training: bool = True) -> tuple[np.ndarray, float, bool]:
        """Apply *action* and return ``(obs, reward, terminal)``.

        Raises:
            RuntimeError: If called before :meth:`start`.
        """
        if self._state is None:
            raise RuntimeError("Game.step() called before Game.start()")
        self._rng, key = split_key(self._rng)
        obs, self._state, reward, done, _ = self._step(
            key, self._state, np.int32(action), self.params,
        )
        self._episode_steps += 1

        terminal = bool(done)
        if training and self.max_episode_steps and self._episode_steps >= self.max_episode_steps:
            terminal = True
        if terminal:
            self._state = None
        return np.asarray(obs), float(reward), terminal

    def __repr__(self) -> str:
        return f"Game({self.env.name}, training={self.is_training})"
