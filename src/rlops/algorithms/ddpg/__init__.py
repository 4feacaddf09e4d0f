from rlops.algorithms.ddpg.agent import DDPG, DDPGMetrics, compute_gradients, soft_update
from rlops.algorithms.ddpg.config import DDPGConfig
from rlops.algorithms.ddpg.network import Actor, Critic
from rlops.algorithms.ddpg.types import DDPGState

__all__ = [
    "DDPG",
    "DDPGConfig",
    "DDPGMetrics",
    "DDPGState",
    "Actor",
    "Critic",
    "compute_gradients",
    "soft_update",
]
