#!/usr/bin/env python3
"""Training script with preset selection.

Select a preset configuration and optionally override any field::

    python scripts/train.py catch_rank
    python scripts/train.py catch_rank --dqn.priority_mode none
    python scripts/train.py catch_dqn --runner.total_steps 200000 --runner.verbose
    python scripts/train.py catch_rank --runner.resume
    python scripts/train.py catch_rank --mode eval --runner.network experiments/Catch/checkpoints/best
    python scripts/train.py catch_rank --help
"""

from __future__ import annotations

import logging

from prioritized_dqn.configs import TrainConfig, cli
from prioritized_dqn.env import Game
from prioritized_dqn.metrics import setup_logging
from prioritized_dqn.run_dir import RunDir
from prioritized_dqn.runner import evaluate_episode, make_agent, select_device, train_dqn

logger = logging.getLogger("prioritized_dqn.train")


def main(config: TrainConfig) -> None:
    setup_logging()
    select_device(config.runner.device)

    game = Game.make(
        config.env_id,
        seed=config.runner.seed,
        random_starts=config.runner.random_starts,
        max_episode_steps=config.runner.max_episode_steps,
    )
    run_dir = RunDir(
        config.runner.experiment_id or game.env.name,
        base_dir=config.runner.base_dir,
    )

    if config.mode == "eval":
        agent, _ = make_agent(game, config.dqn, config.runner, run_dir)
        score = evaluate_episode(agent, game)
        print(f"Evaluation complete | score={score:g}")
        return

    run_dir.save_config(config)
    logger.info("Run directory: %s", run_dir.root)
    result = train_dqn(
        game,
        dqn_config=config.dqn,
        runner_config=config.runner,
        run=run_dir,
    )
    last_returns = result.episode_returns[-100:]
    mean_return = sum(last_returns) / len(last_returns) if last_returns else 0.0
    print(
        f"Training {'interrupted' if result.interrupted else 'complete'} | "
        f"steps={result.last_step} | "
        f"episodes={len(result.episode_returns)} | "
        f"mean_return(last 100)={mean_return:.2f}"
    )
    print(f"Metrics: {run_dir.log_path()}")


if __name__ == "__main__":
    main(cli())
