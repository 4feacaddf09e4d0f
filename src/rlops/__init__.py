"""rlops — live DDPG training on a 1-D point-mass task, with JAX."""

from rlops.advisor import GeminiAdvisor, request_advice
from rlops.env import make
from rlops.metrics import MetricsLogger, MetricsWindow, setup_logging
from rlops.run_dir import RunDir
from rlops.seeding import make_rng, split_key, split_keys
from rlops.types import SimState, TrainingMetric

__all__ = [
    "GeminiAdvisor",
    "MetricsLogger",
    "MetricsWindow",
    "RunDir",
    "SimState",
    "TrainingMetric",
    "make",
    "make_rng",
    "request_advice",
    "setup_logging",
    "split_key",
    "split_keys",
]
