"""Runner configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunnerConfig:
    """Settings for the outer training loop.

    Algorithm-specific settings live in ``DDPGConfig``.
    """

    # Seeding
    seed: int = 0

    # Off-policy
    buffer_size: int = 10_000
    warmup_steps: int = 250  # ticks with no learning

    # Live loop cadence (seconds between ticks)
    tick_interval: float = 0.05

    # Headless runs
    total_timesteps: int = 20_000
    log_interval: int = 500

    def __post_init__(self) -> None:
        if self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.warmup_steps < 0:
            raise ValueError(f"warmup_steps must be >= 0, got {self.warmup_steps}")
        if self.tick_interval < 0:
            raise ValueError(f"tick_interval must be >= 0, got {self.tick_interval}")
