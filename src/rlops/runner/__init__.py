"""Training runners for rlops.

- ``train_step`` — one tick on a :class:`TrainingContext`.
- ``TrainingLoop`` — asyncio orchestrator with start/stop/reset that
  streams metrics and states to subscribers.
- ``train_ddpg`` — headless loop over a fixed number of ticks.
"""

from rlops.runner.config import RunnerConfig
from rlops.runner.context import TrainingContext
from rlops.runner.loop import LoopStatus, TrainingLoop
from rlops.runner.train_ddpg import DDPGTrainResult, TickResult, train_ddpg, train_step

__all__ = [
    # Config
    "RunnerConfig",
    # State
    "TrainingContext",
    # Single tick
    "TickResult",
    "train_step",
    # Live orchestrator
    "LoopStatus",
    "TrainingLoop",
    # Headless
    "DDPGTrainResult",
    "train_ddpg",
]
