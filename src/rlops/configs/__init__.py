"""Preset configuration registry for rlops experiments."""

from rlops.configs.presets import PRESETS, TrainConfig, cli

__all__ = [
    "PRESETS",
    "TrainConfig",
    "cli",
]
