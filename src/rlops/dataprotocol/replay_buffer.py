"""Replay memory for off-policy RL.

numpy arrays for storage + mutation, jax.Array output on sample().
The buffer is NOT jit-compatible — it lives outside the compiled
training step.  Typical usage::

    for step in range(total_steps):
        action, state = jit_act(state, obs)
        next_obs, reward, done = env.step(action)
        buffer.push(obs, action, reward, next_obs, done)
        batch = buffer.sample(batch_size)
        if batch is not None:
            state, metrics = jit_update(state, batch)
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np

from rlops.dataprotocol.transition import Transition


class ReplayBuffer:
    """Fixed-size FIFO ring buffer with uniform sampling (with replacement).

    Once full, each insertion overwrites the oldest entry.  Sampling
    returns a ``Transition`` of jax arrays ready for jit, or ``None``
    while the buffer holds fewer entries than requested.
    """

    def __init__(
        self,
        capacity: int,
        obs_shape: tuple[int, ...],
        action_dim: int = 1,
        *,
        seed: int | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._size = 0
        self._ptr = 0
        self._rng = np.random.default_rng(seed)

        self._obs = np.zeros((capacity, *obs_shape), dtype=np.float32)
        self._actions = np.zeros((capacity, action_dim), dtype=np.float32)
        self._rewards = np.zeros(capacity, dtype=np.float32)
        self._next_obs = np.zeros((capacity, *obs_shape), dtype=np.float32)
        self._dones = np.zeros(capacity, dtype=np.float32)

    def push(
        self,
        obs: np.ndarray,
        action: np.ndarray,
        reward: float,
        next_obs: np.ndarray,
        done: bool,
    ) -> None:
        """Store a single transition, evicting the oldest when full."""
        idx = self._ptr
        self._obs[idx] = obs
        self._actions[idx] = action
        self._rewards[idx] = reward
        self._next_obs[idx] = next_obs
        self._dones[idx] = float(done)
        self._ptr = (self._ptr + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def store(self, t: Transition) -> None:
        """Store a Transition (accepts jax or numpy fields)."""
        self.push(
            obs=np.asarray(t.obs),
            action=np.asarray(t.action),
            reward=float(t.reward),
            next_obs=np.asarray(t.next_obs),
            done=bool(t.done),
        )

    def sample(self, batch_size: int) -> Transition | None:
        """Draw *batch_size* entries uniformly with replacement.

        Returns ``None`` when fewer than *batch_size* entries are held.
        """
        if self._size < batch_size:
            return None
        indices = self._rng.integers(0, self._size, size=batch_size)
        return Transition(
            obs=jnp.asarray(self._obs[indices]),
            action=jnp.asarray(self._actions[indices]),
            reward=jnp.asarray(self._rewards[indices]),
            next_obs=jnp.asarray(self._next_obs[indices]),
            done=jnp.asarray(self._dones[indices]),
        )

    def snapshot(self) -> Transition:
        """Copy of all held entries as numpy arrays, oldest first."""
        if self._size < self.capacity:
            order = np.arange(self._size)
        else:
            order = (np.arange(self.capacity) + self._ptr) % self.capacity
        return Transition(
            obs=self._obs[order].copy(),
            action=self._actions[order].copy(),
            reward=self._rewards[order].copy(),
            next_obs=self._next_obs[order].copy(),
            done=self._dones[order].copy(),
        )

    def clear(self) -> None:
        """Forget every stored transition (storage is reused)."""
        self._size = 0
        self._ptr = 0

    def __len__(self) -> int:
        return self._size
