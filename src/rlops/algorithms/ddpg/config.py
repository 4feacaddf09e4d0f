"""DDPG hyperparameters."""

from __future__ import annotations

from dataclasses import dataclass

import optax


@dataclass(frozen=True)
class DDPGConfig:
    """All DDPG hyperparameters in one place.

    Frozen dataclass — safe to pass into jitted functions as a static
    argument (via ``functools.partial`` or ``jax.jit(..., static_argnums=...)``).
    """

    # Network
    hidden_sizes: tuple[int, int] = (128, 128)
    actor_head_init: float = 3e-3  # actor output weights ~ U(-x, x)

    # Optimization
    actor_lr: float = 1e-4
    critic_lr: float = 2e-4
    gamma: float = 0.99
    batch_size: int = 64
    grad_clip: float = 1.0  # element-wise, applied before Adam

    # Target networks (Polyak averaging)
    tau: float = 0.005

    # Exploration
    epsilon_start: float = 1.0
    epsilon_min: float = 0.05
    epsilon_decay: float = 0.997  # per learning update
    random_warmup: bool = True  # uniform actions until warmup ends

    # Action bounds
    action_low: float = -1.0
    action_high: float = 1.0

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if not 0.0 < self.tau <= 1.0:
            raise ValueError(f"tau must be in (0, 1], got {self.tau}")
        if self.epsilon_min > self.epsilon_start:
            raise ValueError(
                f"epsilon_min ({self.epsilon_min}) exceeds epsilon_start "
                f"({self.epsilon_start})"
            )
        if self.grad_clip <= 0.0:
            raise ValueError(f"grad_clip must be positive, got {self.grad_clip}")

    def make_actor_optimizer(self) -> optax.GradientTransformation:
        """Build the actor optimizer chain."""
        return optax.chain(
            optax.clip(self.grad_clip),
            optax.adam(self.actor_lr),
        )

    def make_critic_optimizer(self) -> optax.GradientTransformation:
        """Build the critic optimizer chain."""
        return optax.chain(
            optax.clip(self.grad_clip),
            optax.adam(self.critic_lr),
        )
