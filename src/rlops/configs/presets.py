"""Preset experiment configurations.

Each preset bundles an environment, DDPG config, and runner settings.
Use :func:`cli` in a script to get a :class:`TrainConfig` with
``overridable_config_cli``: pick a preset and optionally override
individual fields::

    python scripts/train.py pointmass_ddpg --ddpg.actor_lr 3e-4
    python scripts/train.py pointmass_ddpg_blended --runner.total_timesteps 50000
"""

from __future__ import annotations

from dataclasses import dataclass, field

import tyro

from rlops.algorithms.ddpg.config import DDPGConfig
from rlops.runner.config import RunnerConfig


@dataclass(frozen=True)
class TrainConfig:
    """Full training configuration: environment + DDPG + runner."""

    # Environment
    env_id: str = "PointMass1D-v0"

    # Algorithm hyperparameters
    ddpg: DDPGConfig = field(default_factory=DDPGConfig)

    # Runner / outer-loop settings
    runner: RunnerConfig = field(default_factory=RunnerConfig)


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

PRESETS: dict[str, tuple[str, TrainConfig]] = {
    "pointmass_ddpg": (
        "DDPG on PointMass1D-v0 (random warmup, live-dashboard settings)",
        TrainConfig(),
    ),
    "pointmass_ddpg_blended": (
        "DDPG on PointMass1D-v0, noisy policy actions during warmup",
        TrainConfig(
            ddpg=DDPGConfig(random_warmup=False),
        ),
    ),
    "pointmass_ddpg_smoke": (
        "Short DDPG run for smoke-testing an install",
        TrainConfig(
            ddpg=DDPGConfig(batch_size=32),
            runner=RunnerConfig(
                total_timesteps=1_000,
                warmup_steps=100,
                buffer_size=2_000,
                log_interval=100,
            ),
        ),
    ),
}


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def cli(
    args: list[str] | None = None,
    **kwargs: object,
) -> TrainConfig:
    """Parse a preset + overrides from the command line.

    Usage::

        config = cli()                                           # sys.argv
        config = cli(["pointmass_ddpg", "--ddpg.tau", "0.01"])  # explicit args
    """
    return tyro.extras.overridable_config_cli(
        PRESETS,
        args=args,
        use_underscores=True,
        **kwargs,  # type: ignore[arg-type]
    )
