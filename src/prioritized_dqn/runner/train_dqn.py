"""Hybrid DQN training loop.

The replay memory is mutable host-side state and cannot live inside
``lax.scan``, so the design is:

- **Outer loop**: Python ``for`` over steps: plays the game, stores
  transitions, runs validation, progress logging and checkpointing.
- **Inner steps**: ``jax.jit``-compiled action selection and learning
  (``DQN.act`` / ``DQN.learn``), called through :class:`DQNAgent`.

Usage::

    from prioritized_dqn.algorithms.dqn import DQNConfig
    from prioritized_dqn.env import Game
    from prioritized_dqn.runner import RunnerConfig, train_dqn

    game = Game.make("Catch-v0", seed=0)
    result = train_dqn(
        game,
        dqn_config=DQNConfig(priority_mode="rank"),
        runner_config=RunnerConfig(total_steps=500_000),
    )
"""

from __future__ import annotations

import logging
import math
from typing import NamedTuple

from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.env.game import Game
from prioritized_dqn.errors import CheckpointError
from prioritized_dqn.metrics import MetricsLogger, log_step_progress
from prioritized_dqn.run_dir import RunDir
from prioritized_dqn.runner.agent import DQNAgent
from prioritized_dqn.runner.config import RunnerConfig
from prioritized_dqn.runner.interrupt import InterruptFlag

logger = logging.getLogger(__name__)


class ValidationResult(NamedTuple):
    total_score: float
    average_score: float
    episodes: int
    avg_v: float
    avg_td: float


class DQNTrainResult(NamedTuple):
    """Return value from ``train_dqn``."""

    agent: DQNAgent
    last_step: int
    best_score: float
    interrupted: bool
    episode_returns: list[float]


def make_agent(
    game: Game,
    dqn_config: DQNConfig,
    runner_config: RunnerConfig,
    run: RunDir | None = None,
) -> tuple[DQNAgent, int]:
    """Create the agent and load saved parameters.

    An explicit ``runner_config.network`` is always loaded and errors
    propagate.  Otherwise, with ``resume=True``, ``checkpoints/latest`` of
    *run* is restored together with its step; a missing or unreadable
    checkpoint there is logged and training starts fresh.

    Returns:
        ``(agent, first_step)``.
    """
    agent = DQNAgent(
        game,
        dqn_config,
        total_steps=runner_config.total_steps,
        seed=runner_config.seed,
        val_size=runner_config.val_size,
    )
    first_step = 1
    if runner_config.network is not None:
        logger.info("Loading pretrained network from %s", runner_config.network)
        agent.load(runner_config.network)
    elif runner_config.resume and run is not None:
        latest = run.resolve("latest")
        if latest is None:
            logger.info("No saved checkpoint in %s, starting fresh", run.checkpoints)
        else:
            try:
                saved_step = agent.restore(latest)
            except (FileNotFoundError, CheckpointError) as e:
                logger.warning("Could not resume from %s: %s", latest, e)
            else:
                first_step = saved_step + 1
                logger.info("Resuming from step %d", saved_step)
    return agent, first_step


def validate(agent: DQNAgent, game: Game, runner_config: RunnerConfig, step: int) -> ValidationResult:
    """Play ``val_steps`` steps in evaluation mode, then report Q statistics.

    Only completed episodes count towards the scores.  Leaves the agent
    and game in evaluation mode.
    """
    agent.evaluate()
    obs, terminal = game.start(), False
    episode, episode_reward, total_reward = 0, 0.0, 0.0

    for val_step in range(1, runner_config.val_steps + 1):
        if terminal:
            episode += 1
            total_reward += episode_reward
            if runner_config.verbose:
                logger.info(
                    "Val episode %d | score: %g | steps: %d/%d",
                    episode, episode_reward, val_step, runner_config.val_steps,
                )
            obs, terminal, episode_reward = game.start(), False, 0.0
            continue
        action = agent.observe(obs, step)
        obs, reward, terminal = agent.act(action, step)
        episode_reward += reward

    avg_v, avg_td = agent.report()
    return ValidationResult(
        total_score=total_reward,
        average_score=total_reward / max(episode, 1),
        episodes=episode,
        avg_v=avg_v,
        avg_td=avg_td,
    )


def _save(agent: DQNAgent, run: RunDir, step: int, marker: str) -> None:
    agent.save(run.checkpoint_dir(step), step)
    run.mark(marker, step)
    run.cleanup_checkpoints()
    logger.info("Saved %s checkpoint at step %d", marker, step)


def train_dqn(
    game: Game,
    *,
    dqn_config: DQNConfig,
    runner_config: RunnerConfig,
    run: RunDir | None = None,
    interrupt: InterruptFlag | None = None,
) -> DQNTrainResult:
    """Train DQN on *game* for ``runner_config.total_steps`` steps.

    Each step the agent observes, acts, stores the transition, learns
    every ``sample_freq`` steps after ``learn_start`` and synchronises the
    target network every ``tau`` steps.  Every ``val_freq`` steps (after
    ``learn_start``) the agent is validated; a new best total score saves
    ``checkpoints/best``.  On SIGINT the current step completes, then
    ``checkpoints/latest`` is saved and training stops.  ``latest`` is
    also saved at the end of training.

    Args:
        game: The game to play.
        dqn_config: Algorithm and replay hyperparameters.
        runner_config: Outer-loop settings.
        run: Experiment directory; created from ``runner_config`` if ``None``.
        interrupt: Cancellation flag; a SIGINT-backed one is installed
            if ``None``.
    """
    if run is None:
        run = RunDir(
            runner_config.experiment_id or game.env.name,
            base_dir=runner_config.base_dir,
        )
    agent, first_step = make_agent(game, dqn_config, runner_config, run)
    if interrupt is None:
        interrupt = InterruptFlag()

    total_steps = runner_config.total_steps
    best_score = -math.inf
    episode_returns: list[float] = []
    interrupted = False
    step = first_step - 1

    agent.training()
    obs, reward, terminal = game.start(), 0.0, False
    episode, episode_reward = 1, 0.0

    logger.info("Training %s for %d steps in %s", game.env.name, total_steps, run.root)
    with interrupt, MetricsLogger(run.log_path()) as metrics:
        for step in range(first_step, total_steps + 1):
            if not terminal:
                action = agent.observe(obs, step)
                obs, reward, terminal = agent.act(action, step)
                episode_reward += reward
            else:
                episode_returns.append(episode_reward)
                if runner_config.verbose:
                    logger.info(
                        "Episode %d | score: %g | steps: %d/%d",
                        episode, episode_reward, step, total_steps,
                    )
                    metrics.write({"step": step, "episode": episode, "score": episode_reward})
                episode += 1
                obs, reward, terminal = game.start(), 0.0, False
                episode_reward = 0.0

            if step == dqn_config.learn_start:
                logger.info("Learning started")

            if step % runner_config.progress_freq == 0:
                record = {
                    "step": step,
                    "epsilon": agent.schedule.epsilon_at(step),
                    "beta": agent.schedule.beta_at(step),
                    "memory": len(agent.memory),
                }
                if agent.last_loss is not None:
                    record["loss"] = agent.last_loss
                log_step_progress(step, total_steps, record)
                metrics.write(record)

            if step % runner_config.val_freq == 0 and step >= dqn_config.learn_start:
                logger.info("Validating")
                result = validate(agent, game, runner_config, step)
                logger.info(
                    "Total score: %g | average score: %g | avg V(s): %.4f | avg |td|: %.4f",
                    result.total_score, result.average_score, result.avg_v, result.avg_td,
                )
                metrics.write({"step": step, **result._asdict()})
                if result.total_score > best_score:
                    logger.info("New best score")
                    best_score = result.total_score
                    _save(agent, run, step, "best")

                logger.info("Resuming training")
                agent.training()
                obs, reward, terminal = game.start(), 0.0, False
                episode_reward = 0.0

            if interrupt:
                interrupted = True
                break

        if step >= first_step:
            _save(agent, run, step, "latest")

    if interrupted:
        logger.warning("Training interrupted at step %d", step)
    else:
        logger.info("Training complete")
    return DQNTrainResult(
        agent=agent,
        last_step=step,
        best_score=best_score,
        interrupted=interrupted,
        episode_returns=episode_returns,
    )


def evaluate_episode(agent: DQNAgent, game: Game, max_steps: int = 100_000) -> float:
    """Play one episode in evaluation mode and return its score."""
    agent.evaluate()
    obs, terminal = game.start(), False
    score = 0.0
    for _ in range(max_steps):
        if terminal:
            break
        action = agent.observe(obs, 0)
        obs, reward, terminal = agent.act(action, 0)
        score += reward
    logger.info("Evaluation score: %g", score)
    return score
