"""Data structures for JAX-based RL.

Core types:
    - Transition: immutable NamedTuple experience container
    - ReplayBuffer: numpy-backed FIFO buffer with jax.Array sampling
"""

from rlops.dataprotocol.replay_buffer import ReplayBuffer
from rlops.dataprotocol.transition import Batch, Transition

__all__ = [
    "Transition",
    "Batch",
    "ReplayBuffer",
]
