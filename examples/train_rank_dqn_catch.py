"""Train Double DQN with rank-based prioritised replay on Catch."""

from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.env import Game
from prioritized_dqn.metrics import setup_logging
from prioritized_dqn.runner import RunnerConfig, evaluate_episode, train_dqn


def main() -> None:
    setup_logging()

    game = Game.make("Catch-v0", seed=42)
    dqn_config = DQNConfig(
        hidden_sizes=(64, 64),
        lr=7e-3,
        memory_size=20_000,
        learn_start=1_000,
        epsilon_steps=20_000,
        tau=1_000,
        priority_mode="rank",
        rebalance_interval=5_000,
    )
    runner_config = RunnerConfig(
        total_steps=50_000,
        progress_freq=5_000,
        val_freq=10_000,
        val_steps=2_000,
        seed=42,
        experiment_id="rank_dqn_catch",
        base_dir="runs",
    )
    result = train_dqn(game, dqn_config=dqn_config, runner_config=runner_config)
    score = evaluate_episode(result.agent, game)
    print(f"Training complete. Best validation score: {result.best_score:g}, final episode: {score:g}")


if __name__ == "__main__":
    main()
