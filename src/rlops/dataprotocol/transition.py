"""Transition container for RL experience data.

A NamedTuple is an immutable, zero-overhead PyTree that composes
naturally with jax.jit and jax.vmap.

A single Transition holds scalar/1-D fields.  A *batched* Transition
(fields with a leading batch dim) serves as the Batch type — no
separate class needed.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array


class Transition(NamedTuple):
    """A single (s, a, r, s', done) experience tuple.

    Fields:
        obs:      Observation.          single: (*obs_shape,)  batched: (B, *obs_shape)
        action:   Action taken.         single: (A,)           batched: (B, A)
        reward:   Scalar reward.        single: ()             batched: (B,)
        next_obs: Next observation.     single: (*obs_shape,)  batched: (B, *obs_shape)
        done:     Terminal flag (0/1).  single: ()             batched: (B,)
    """

    obs: Array
    action: Array
    reward: Array
    next_obs: Array
    done: Array


# A "Batch" is simply a Transition whose fields have a leading batch
# dimension.
Batch = Transition
