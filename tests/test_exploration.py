"""Tests for rlops.exploration."""

from __future__ import annotations

import jax
import jax.numpy as jnp
import pytest

from rlops.exploration import (
    add_exploration_noise,
    decay_epsilon,
    epsilon_after,
    uniform_action,
)


class TestDecayEpsilon:
    def test_single_step(self) -> None:
        eps = decay_epsilon(1.0, decay=0.997, floor=0.05)
        assert float(eps) == pytest.approx(0.997)

    def test_floor(self) -> None:
        eps = decay_epsilon(0.0501, decay=0.5, floor=0.05)
        assert float(eps) == pytest.approx(0.05)

    def test_monotone_and_floored(self) -> None:
        eps = jnp.float32(1.0)
        prev = float(eps)
        for _ in range(2000):
            eps = decay_epsilon(eps, decay=0.997, floor=0.05)
            assert float(eps) <= prev
            assert float(eps) >= 0.05 - 1e-7
            prev = float(eps)
        assert prev == pytest.approx(0.05)

    def test_closed_form_matches_iteration(self) -> None:
        eps = jnp.float32(1.0)
        for _ in range(300):
            eps = decay_epsilon(eps, decay=0.997, floor=0.05)
        closed = epsilon_after(300, start=1.0, decay=0.997, floor=0.05)
        assert float(closed) == pytest.approx(float(eps), rel=1e-4)


class TestNoise:
    def test_clamped_to_bounds(self) -> None:
        key = jax.random.PRNGKey(0)
        action = jnp.array([0.99])
        for i in range(50):
            noisy = add_exploration_noise(jax.random.fold_in(key, i), action, 1.0)
            assert -1.0 <= float(noisy[0]) <= 1.0

    def test_zero_epsilon_is_identity(self) -> None:
        action = jnp.array([0.3])
        noisy = add_exploration_noise(jax.random.PRNGKey(1), action, 0.0)
        assert float(noisy[0]) == pytest.approx(0.3)

    def test_noise_magnitude_bounded_by_epsilon(self) -> None:
        key = jax.random.PRNGKey(2)
        action = jnp.zeros((1,))
        for i in range(50):
            noisy = add_exploration_noise(jax.random.fold_in(key, i), action, 0.2)
            assert abs(float(noisy[0])) <= 0.2 + 1e-6

    def test_uniform_action_in_range(self) -> None:
        actions = uniform_action(jax.random.PRNGKey(3), (1000,), -1.0, 1.0)
        assert float(actions.min()) >= -1.0
        assert float(actions.max()) <= 1.0
        assert float(jnp.std(actions)) > 0.4
