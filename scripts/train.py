#!/usr/bin/env python3
"""Headless training script with preset selection.

Select a preset configuration and optionally override any field::

    python scripts/train.py pointmass_ddpg
    python scripts/train.py pointmass_ddpg --ddpg.actor_lr 3e-4
    python scripts/train.py pointmass_ddpg_smoke --runner.seed 7
    python scripts/train.py pointmass_ddpg --help
"""

from __future__ import annotations

import json

from rlops.configs import TrainConfig, cli
from rlops.env import make
from rlops.metrics import setup_logging
from rlops.run_dir import RunDir
from rlops.runner import train_ddpg


def main(config: TrainConfig) -> None:
    setup_logging()
    env, env_params = make(config.env_id)

    run_dir = RunDir(f"{config.env_id}_ddpg")
    run_dir.save_config(config)
    print(f"Run directory: {run_dir.root}")

    result = train_ddpg(
        env,
        env_params,
        ddpg_config=config.ddpg,
        runner_config=config.runner,
        run_dir=run_dir,
    )

    n_episodes = len(result.episode_returns)
    last_returns = result.episode_returns[-10:]
    mean_return = sum(last_returns) / len(last_returns) if last_returns else 0.0
    report = {
        "episodes": n_episodes,
        "mean_return_last_10": mean_return,
        "final_epsilon": float(result.agent_state.epsilon),
        "updates": int(result.agent_state.step),
    }
    run_dir.artifact_path("final_report.json").write_text(
        json.dumps(report, indent=2) + "\n"
    )
    print(
        f"Training complete | "
        f"episodes={n_episodes} | "
        f"mean_return(last 10)={mean_return:.2f}"
    )
    print(f"Metrics: {run_dir.log_path()}")


if __name__ == "__main__":
    main(cli())
