"""Core type definitions for rlops.

Device-side containers (agent state, transitions) are NamedTuples so
they are JAX pytrees for free.  Host-side records that leave the
training core (``TrainingMetric``, ``SimState``) hold plain Python
scalars so observers can serialise them without touching JAX.
"""

from __future__ import annotations

from typing import Any, NamedTuple, TypeAlias

# Generic pytree aliases
Params: TypeAlias = Any  # network parameter pytree (Equinox module)
OptState: TypeAlias = Any  # optax optimizer state pytree


# ---------------------------------------------------------------------------
# Records published by the training loop
# ---------------------------------------------------------------------------
class TrainingMetric(NamedTuple):
    """One record of the metric stream, produced once per tick.

    ``critic_loss`` and ``actor_loss`` are zero on ticks where no
    learning update was applied (warmup, under-filled memory, or a
    rejected non-finite update).  ``q_value`` is the batch-mean critic
    estimate from the critic-loss forward pass.
    """

    step: int
    reward: float
    critic_loss: float
    actor_loss: float
    q_value: float


class SimState(NamedTuple):
    """Host-side snapshot of the point-mass physical state."""

    position: float
    velocity: float
    target: float

    @property
    def distance(self) -> float:
        return abs(self.target - self.position)
