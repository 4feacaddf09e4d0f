"""Epsilon-scaled exploration noise with multiplicative decay.

Every function here is pure and safe inside ``jax.jit``.  The running
epsilon lives in the agent state; these helpers only compute new
values from old ones.

Usage::

    from rlops.exploration import add_exploration_noise, decay_epsilon

    action = add_exploration_noise(key, actor(obs), epsilon)
    epsilon = decay_epsilon(epsilon, decay=0.997, floor=0.05)
"""

from __future__ import annotations

import jax
import jax.numpy as jnp


def decay_epsilon(
    epsilon: float | jax.Array,
    *,
    decay: float,
    floor: float,
) -> jax.Array:
    """One decay step: ``max(floor, epsilon * decay)``."""
    return jnp.maximum(jnp.float32(floor), jnp.float32(epsilon) * decay)


def epsilon_after(
    n_updates: int | jax.Array,
    *,
    start: float,
    decay: float,
    floor: float,
) -> jax.Array:
    """Closed form of ``n_updates`` applications of :func:`decay_epsilon`.

    The floor is absorbing, so the iterated update equals
    ``max(floor, start * decay ** n)``.
    """
    n = jnp.float32(n_updates)
    return jnp.maximum(jnp.float32(floor), jnp.float32(start) * jnp.float32(decay) ** n)


def add_exploration_noise(
    key: jax.Array,
    action: jax.Array,
    epsilon: float | jax.Array,
    low: float = -1.0,
    high: float = 1.0,
) -> jax.Array:
    """Add ``uniform(-1, 1) * epsilon`` noise and clamp to ``[low, high]``."""
    noise = jax.random.uniform(key, shape=action.shape, minval=-1.0, maxval=1.0)
    return jnp.clip(action + noise * epsilon, low, high)


def uniform_action(
    key: jax.Array,
    shape: tuple[int, ...],
    low: float = -1.0,
    high: float = 1.0,
) -> jax.Array:
    """Uniformly random action, ignoring the policy (warmup)."""
    return jax.random.uniform(key, shape=shape, minval=low, maxval=high)
