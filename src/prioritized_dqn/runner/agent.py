"""Stateful DQN agent driving one game.

``DQNAgent`` owns the pure :class:`~prioritized_dqn.algorithms.dqn.DQN`
state, the replay memory and the exploration schedule, and performs one
environment step at a time::

    agent = DQNAgent(game, config, total_steps=100_000, seed=0)
    obs = game.start()
    for step in range(1, total_steps + 1):
        action = agent.observe(obs, step)
        obs, reward, terminal = agent.act(action, step)
        if terminal:
            obs = game.start()
"""

from __future__ import annotations

import logging
from pathlib import Path

import jax.numpy as jnp
import numpy as np

from prioritized_dqn.algorithms.dqn.agent import DQN
from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.checkpoint import load_params, load_training_state, save_training_state
from prioritized_dqn.env.game import Game
from prioritized_dqn.replay.memory import ExperienceReplay
from prioritized_dqn.schedule import ExplorationSchedule
from prioritized_dqn.seeding import make_np_rng, make_rng
from prioritized_dqn.types import Transition

logger = logging.getLogger(__name__)


class DQNAgent:
    """DQN agent with prioritised experience replay.

    Fields valid only while a training step is in progress:

    * ``obs``: the current (pre-action) observation, set by
      :meth:`observe` in training mode and cleared when the episode ends
      or the agent switches to evaluation mode.

    Persistent fields:

    * ``state``: :class:`DQNState` (policy and target networks, optimizer).
    * ``memory``: :class:`ExperienceReplay`.
    * ``schedule``: per-step epsilon and beta.
    * ``last_loss``: loss of the latest learning step, or ``None``.
    """

    def __init__(
        self,
        game: Game,
        config: DQNConfig,
        *,
        total_steps: int,
        seed: int = 0,
        val_size: int = 500,
    ) -> None:
        self.game = game
        self.config = config
        self.actions = game.get_actions()
        self.obs_shape = game.observation_shape
        self.val_size = val_size

        self.state = DQN.init(make_rng(seed), self.obs_shape, len(self.actions), config)
        self.memory = ExperienceReplay.from_config(
            config, self.obs_shape, rng=make_np_rng(seed),
        )
        self.schedule = ExplorationSchedule.from_config(config, total_steps)

        self.is_training = True
        self.obs: np.ndarray | None = None
        self.last_loss: float | None = None
        self.val_set: Transition | None = None

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def training(self) -> None:
        self.is_training = True
        self.game.training()

    def evaluate(self) -> None:
        """Switch to evaluation mode; any in-progress transition is dropped."""
        self.is_training = False
        self.obs = None
        self.game.evaluate()

    # ------------------------------------------------------------------
    # Acting
    # ------------------------------------------------------------------

    def epsilon(self, step: int) -> float:
        if self.is_training:
            return self.schedule.epsilon_at(step)
        return self.config.eval_epsilon

    def observe(self, obs: np.ndarray, step: int) -> int:
        """Choose an action for *obs* by epsilon-greedy exploration."""
        if self.is_training:
            self.obs = np.asarray(obs)
        action, self.state = DQN.act(self.state, jnp.asarray(obs), self.epsilon(step))
        return int(action)

    def act(self, action: int, step: int) -> tuple[np.ndarray, float, bool]:
        """Play *action* and, in training mode, store and learn.

        Within one call the transition is stored, a learning step runs
        every ``sample_freq`` steps once ``step >= learn_start`` (and the
        memory holds a full batch, which matters after resuming), and the
        target network is synchronised every ``tau`` steps.

        Returns:
            ``(obs, reward, terminal)`` as reported by the game (reward
            unclipped).
        """
        next_obs, reward, terminal = self.game.step(self.actions[action], self.is_training)
        if not self.is_training:
            return next_obs, reward, terminal

        if self.obs is None:
            raise RuntimeError("DQNAgent.act() called without a preceding observe()")
        self.memory.store(self.obs, action, self.clip_reward(reward), next_obs, terminal)
        self.obs = None if terminal else next_obs

        cfg = self.config
        if (
            step % cfg.sample_freq == 0
            and step >= cfg.learn_start
            and len(self.memory) >= cfg.batch_size
        ):
            for _ in range(cfg.n_replay):
                self.last_loss = self.learn(self.schedule.beta_at(step))

        self.state, synced = DQN.maybe_sync_target(self.state, step, config=cfg)
        if synced:
            logger.debug("Target network synchronised at step %d", step)
        return next_obs, reward, terminal

    def clip_reward(self, reward: float) -> float:
        if self.config.reward_clip > 0:
            return float(np.clip(reward, -self.config.reward_clip, self.config.reward_clip))
        return float(reward)

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def learn(self, beta: float) -> float:
        """One learning step: sample, update the network, feed back priorities.

        Returns:
            The mean squared clipped TD-error of the batch.
        """
        sample = self.memory.sample(self.config.batch_size, beta)
        batch = self.memory.retrieve(sample.indices, sample.stamps)
        self.state, out = DQN.learn(
            self.state, batch, jnp.asarray(sample.weights), config=self.config,
        )
        self.memory.update_priorities(sample.indices, np.asarray(out.td_errors))
        return float(out.loss)

    def report(self) -> tuple[float, float]:
        """Average ``V(s)`` and average ``|td|`` over the validation set.

        The validation set is ``val_size`` transitions drawn uniformly
        from memory the first time this is called, and reused afterwards.
        """
        if self.val_set is None:
            self.val_set = self.memory.sample_uniform(self.val_size)
        avg_v, avg_td = DQN.evaluate_batch(self.state, self.val_set, config=self.config)
        return float(avg_v), float(avg_td)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, directory: str | Path, step: int) -> Path:
        """Atomically save policy parameters and *step*."""
        return save_training_state(directory, self.state.params, step=step)

    def load(self, path: str | Path) -> None:
        """Load policy parameters; the target network is set to match."""
        params = load_params(path, self.state.params)
        self._set_params(params)

    def restore(self, directory: str | Path) -> int:
        """Load parameters and return the saved step counter."""
        params, step = load_training_state(directory, self.state.params)
        self._set_params(params)
        return step

    def _set_params(self, params) -> None:
        self.state = self.state._replace(params=params, target_params=params)
