"""Tests for the DDPG (Deep Deterministic Policy Gradient) algorithm."""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp
import numpy as np
import pytest

from rlops.algorithms.ddpg import (
    DDPG,
    Actor,
    Critic,
    DDPGConfig,
    DDPGMetrics,
    DDPGState,
    compute_gradients,
    soft_update,
)
from rlops.dataprotocol import Transition
from rlops.exploration import epsilon_after

RNG = jax.random.PRNGKey(42)
OBS_SHAPE = (3,)
ACTION_DIM = 1
BATCH_SIZE = 16


@pytest.fixture
def config():
    return DDPGConfig(hidden_sizes=(32, 32), batch_size=BATCH_SIZE)


@pytest.fixture
def state(config):
    return DDPG.init(RNG, OBS_SHAPE, ACTION_DIM, config)


@pytest.fixture
def batch():
    key = jax.random.PRNGKey(123)
    k1, k2, k3, k4 = jax.random.split(key, 4)
    return Transition(
        obs=jax.random.normal(k1, (BATCH_SIZE, *OBS_SHAPE)),
        action=jax.random.uniform(k2, (BATCH_SIZE, ACTION_DIM), minval=-1.0, maxval=1.0),
        reward=jax.random.normal(k3, (BATCH_SIZE,)),
        next_obs=jax.random.normal(k4, (BATCH_SIZE, *OBS_SHAPE)),
        done=jnp.zeros(BATCH_SIZE),
    )


def _leaves(tree):
    return jax.tree.leaves(eqx.filter(tree, eqx.is_array))


def _trees_equal(a, b) -> bool:
    return all(jnp.array_equal(x, y) for x, y in zip(_leaves(a), _leaves(b), strict=True))


# ── Network Tests ────────────────────────────────────────────────────


class TestActor:
    def test_output_shape(self):
        actor = Actor(3, 1, (32, 32), key=jax.random.PRNGKey(0))
        assert actor(jnp.zeros(3)).shape == (1,)

    def test_batched_via_vmap(self):
        actor = Actor(3, 1, (32, 32), key=jax.random.PRNGKey(0))
        assert jax.vmap(actor)(jnp.zeros((8, 3))).shape == (8, 1)

    def test_output_bounded(self):
        actor = Actor(3, 1, (32, 32), head_init=10.0, key=jax.random.PRNGKey(0))
        obs = jax.random.normal(jax.random.PRNGKey(1), (64, 3)) * 100.0
        actions = jax.vmap(actor)(obs)
        assert float(jnp.max(jnp.abs(actions))) <= 1.0

    def test_small_head_init(self):
        actor = Actor(3, 1, (32, 32), head_init=3e-3, key=jax.random.PRNGKey(0))
        assert float(jnp.max(jnp.abs(actor.head.weight))) <= 3e-3
        assert float(jnp.max(jnp.abs(actor.head.bias))) == 0.0
        # Initial policy is close to zero on typical observations
        obs = jax.random.normal(jax.random.PRNGKey(1), (32, 3))
        assert float(jnp.max(jnp.abs(jax.vmap(actor)(obs)))) < 0.5

    def test_hidden_bias_zero(self):
        actor = Actor(3, 1, (32, 32), key=jax.random.PRNGKey(0))
        for layer in actor.layers:
            assert float(jnp.max(jnp.abs(layer.bias))) == 0.0


class TestCritic:
    def test_output_shape(self):
        critic = Critic(3, 1, (32, 32), key=jax.random.PRNGKey(0))
        assert critic(jnp.zeros(3), jnp.zeros(1)).shape == ()

    def test_batched_via_vmap(self):
        critic = Critic(3, 1, (32, 32), key=jax.random.PRNGKey(0))
        q = jax.vmap(critic)(jnp.zeros((8, 3)), jnp.zeros((8, 1)))
        assert q.shape == (8,)

    def test_action_enters_after_first_layer(self):
        critic = Critic(3, 1, (32, 24), key=jax.random.PRNGKey(0))
        assert critic.obs_layer.in_features == 3
        assert critic.joint_layer.in_features == 32 + 1
        assert critic.head.out_features == 1

    def test_depends_on_action(self):
        critic = Critic(3, 1, (32, 32), key=jax.random.PRNGKey(0))
        obs = jnp.ones(3)
        q_neg = critic(obs, jnp.array([-1.0]))
        q_pos = critic(obs, jnp.array([1.0]))
        assert float(q_neg) != float(q_pos)


# ── Primitive Tests ─────────────────────────────────────────────────


class TestSoftUpdate:
    def test_exact_formula(self):
        target = {"w": jnp.array([[1.0, 2.0], [3.0, 4.0]]), "b": jnp.array([0.5])}
        online = {"w": jnp.array([[5.0, -6.0], [7.0, 0.0]]), "b": jnp.array([-1.5])}
        tau = 0.005
        new = soft_update(target, online, tau)
        for name in ("w", "b"):
            expected = tau * np.asarray(online[name]) + (1 - tau) * np.asarray(target[name])
            np.testing.assert_allclose(np.asarray(new[name]), expected, rtol=1e-6)

    def test_tau_one_copies(self):
        k1, k2 = jax.random.split(RNG)
        target = Critic(3, 1, (8, 8), key=k1)
        online = Critic(3, 1, (8, 8), key=k2)
        assert _trees_equal(soft_update(target, online, 1.0), online)

    def test_module_structure_preserved(self):
        k1, k2 = jax.random.split(RNG)
        target = Actor(3, 1, (8, 8), key=k1)
        online = Actor(3, 1, (8, 8), key=k2)
        new = soft_update(target, online, 0.005)
        assert isinstance(new, Actor)
        assert new(jnp.zeros(3)).shape == (1,)


class TestComputeGradients:
    def test_quadratic(self):
        params = {"x": jnp.array([1.0, -2.0])}
        loss, grads = compute_gradients(lambda p: jnp.sum(p["x"] ** 2), params)
        assert float(loss) == pytest.approx(5.0)
        np.testing.assert_allclose(np.asarray(grads["x"]), [2.0, -4.0])

    def test_has_aux(self):
        params = {"x": jnp.array(3.0)}
        (loss, aux), grads = compute_gradients(
            lambda p: (p["x"] ** 2, p["x"] + 1.0), params, has_aux=True
        )
        assert float(loss) == pytest.approx(9.0)
        assert float(aux) == pytest.approx(4.0)
        assert float(grads["x"]) == pytest.approx(6.0)


# ── Agent Tests ──────────────────────────────────────────────────────


class TestDDPGInit:
    def test_returns_state(self, state):
        assert isinstance(state, DDPGState)
        assert int(state.step) == 0
        assert float(state.epsilon) == pytest.approx(1.0)

    def test_targets_start_equal(self, state):
        assert _trees_equal(state.actor_params, state.target_actor_params)
        assert _trees_equal(state.critic_params, state.target_critic_params)

    def test_different_seeds_differ(self, config):
        a = DDPG.init(jax.random.PRNGKey(0), OBS_SHAPE, ACTION_DIM, config)
        b = DDPG.init(jax.random.PRNGKey(1), OBS_SHAPE, ACTION_DIM, config)
        assert not _trees_equal(a.actor_params, b.actor_params)


class TestDDPGAct:
    def test_action_shape_and_bounds(self, state, config):
        obs = jnp.zeros(OBS_SHAPE)
        for _ in range(20):
            action, state = DDPG.act(state, obs, config=config)
            assert action.shape == (ACTION_DIM,)
            assert -1.0 <= float(action[0]) <= 1.0

    def test_rng_advances(self, state, config):
        _, new_state = DDPG.act(state, jnp.zeros(OBS_SHAPE), config=config)
        assert not jnp.array_equal(state.rng, new_state.rng)

    def test_no_explore_is_deterministic(self, state, config):
        obs = jnp.ones(OBS_SHAPE)
        a1, s1 = DDPG.act(state, obs, config=config, explore=False)
        a2, _ = DDPG.act(s1, obs, config=config, explore=False)
        assert jnp.array_equal(a1, a2)
        np.testing.assert_allclose(
            np.asarray(a1), np.asarray(state.actor_params(obs)), rtol=1e-5, atol=1e-7
        )

    def test_zero_epsilon_returns_policy_action(self, state, config):
        state = state._replace(epsilon=jnp.float32(0.0))
        obs = jnp.ones(OBS_SHAPE)
        action, _ = DDPG.act(state, obs, config=config)
        np.testing.assert_allclose(
            np.asarray(action), np.asarray(state.actor_params(obs)), rtol=1e-5, atol=1e-7
        )

    def test_warmup_ignores_policy(self, state, config):
        # Near-zero initial policy + zero epsilon: only a random warmup
        # action can land far from zero.
        state = state._replace(epsilon=jnp.float32(0.0))
        obs = jnp.zeros(OBS_SHAPE)
        actions = []
        for _ in range(30):
            action, state = DDPG.act(state, obs, True, config=config)
            actions.append(float(action[0]))
        assert max(abs(a) for a in actions) > 0.3

    def test_blended_warmup_uses_policy(self, state):
        config = DDPGConfig(hidden_sizes=(32, 32), random_warmup=False)
        state = state._replace(epsilon=jnp.float32(0.0))
        obs = jnp.zeros(OBS_SHAPE)
        action, _ = DDPG.act(state, obs, True, config=config)
        np.testing.assert_allclose(
            np.asarray(action), np.asarray(state.actor_params(obs)), rtol=1e-5, atol=1e-7
        )


class TestDDPGUpdate:
    def test_returns_metrics(self, state, batch, config):
        new_state, metrics = DDPG.update(state, batch, config=config)
        assert isinstance(metrics, DDPGMetrics)
        assert bool(metrics.finite)
        assert jnp.isfinite(metrics.critic_loss)
        assert jnp.isfinite(metrics.actor_loss)
        assert jnp.isfinite(metrics.q_mean)
        assert int(new_state.step) == 1

    def test_params_change(self, state, batch, config):
        new_state, _ = DDPG.update(state, batch, config=config)
        assert not _trees_equal(state.actor_params, new_state.actor_params)
        assert not _trees_equal(state.critic_params, new_state.critic_params)

    def test_targets_follow_polyak(self, state, batch, config):
        new_state, _ = DDPG.update(state, batch, config=config)
        tau = config.tau
        for old_t, online, new_t in zip(
            _leaves(state.target_critic_params),
            _leaves(new_state.critic_params),
            _leaves(new_state.target_critic_params),
            strict=True,
        ):
            expected = tau * online + (1.0 - tau) * old_t
            np.testing.assert_allclose(np.asarray(new_t), np.asarray(expected), atol=1e-6)

    def test_epsilon_decays_per_update(self, state, batch, config):
        for _ in range(5):
            state, metrics = DDPG.update(state, batch, config=config)
        expected = epsilon_after(
            5,
            start=config.epsilon_start,
            decay=config.epsilon_decay,
            floor=config.epsilon_min,
        )
        assert float(state.epsilon) == pytest.approx(float(expected), rel=1e-5)
        assert float(metrics.epsilon) == pytest.approx(float(state.epsilon))

    def test_epsilon_floor(self, batch):
        config = DDPGConfig(
            hidden_sizes=(32, 32), batch_size=BATCH_SIZE, epsilon_decay=0.5
        )
        state = DDPG.init(RNG, OBS_SHAPE, ACTION_DIM, config)
        for _ in range(10):
            state, _ = DDPG.update(state, batch, config=config)
        assert float(state.epsilon) == pytest.approx(config.epsilon_min)

    def test_non_finite_batch_rejected(self, state, batch, config):
        poisoned = batch._replace(reward=batch.reward.at[0].set(jnp.nan))
        new_state, metrics = DDPG.update(state, poisoned, config=config)
        assert not bool(metrics.finite)
        assert _trees_equal(state.actor_params, new_state.actor_params)
        assert _trees_equal(state.critic_params, new_state.critic_params)
        assert _trees_equal(state.target_actor_params, new_state.target_actor_params)
        assert _trees_equal(state.target_critic_params, new_state.target_critic_params)
        assert float(new_state.epsilon) == float(state.epsilon)
        assert int(new_state.step) == int(state.step)

    def test_update_after_rejection_still_learns(self, state, batch, config):
        poisoned = batch._replace(obs=batch.obs.at[0].set(jnp.inf))
        state, _ = DDPG.update(state, poisoned, config=config)
        state, metrics = DDPG.update(state, batch, config=config)
        assert bool(metrics.finite)
        assert int(state.step) == 1

    def test_terminal_transitions_do_not_bootstrap(self, state, config):
        # With done=1 the TD target is the reward alone, so the critic
        # loss must match (r - Q(s, a))^2 regardless of next_obs.
        obs = jnp.ones((4, 3))
        action = jnp.zeros((4, 1))
        reward = jnp.array([1.0, -1.0, 0.5, 0.0])
        q = jax.vmap(state.critic_params)(obs, action)
        expected = float(jnp.mean((reward - q) ** 2))
        for next_obs in (jnp.zeros((4, 3)), jnp.full((4, 3), 50.0)):
            batch = Transition(obs, action, reward, next_obs, jnp.ones(4))
            _, metrics = DDPG.update(state, batch, config=config)
            assert float(metrics.critic_loss) == pytest.approx(expected, rel=1e-5)

    def test_loss_decreases_on_fixed_batch(self, batch):
        config = DDPGConfig(hidden_sizes=(32, 32), batch_size=BATCH_SIZE, critic_lr=1e-3)
        state = DDPG.init(RNG, OBS_SHAPE, ACTION_DIM, config)
        _, first = DDPG.update(state, batch, config=config)
        for _ in range(100):
            state, metrics = DDPG.update(state, batch, config=config)
        assert float(metrics.critic_loss) < float(first.critic_loss)


class TestDDPGConfig:
    def test_defaults(self):
        config = DDPGConfig()
        assert config.hidden_sizes == (128, 128)
        assert config.actor_lr == pytest.approx(1e-4)
        assert config.critic_lr == pytest.approx(2e-4)
        assert config.gamma == pytest.approx(0.99)
        assert config.tau == pytest.approx(0.005)
        assert config.batch_size == 64
        assert config.epsilon_min == pytest.approx(0.05)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"batch_size": 0},
            {"tau": 0.0},
            {"tau": 1.5},
            {"grad_clip": 0.0},
            {"epsilon_start": 0.01, "epsilon_min": 0.05},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            DDPGConfig(**kwargs)

    def test_hashable_for_jit(self):
        assert hash(DDPGConfig()) == hash(DDPGConfig())

    def test_gradient_clip_is_elementwise(self):
        optimizer = DDPGConfig(grad_clip=1.0).make_critic_optimizer()
        params = {"w": jnp.zeros(3)}
        opt_state = optimizer.init(params)
        grads = {"w": jnp.array([100.0, -0.5, -3.0])}
        _, new_opt_state = optimizer.update(grads, opt_state, params)
        # Adam sees the clipped gradient: first moment is (1 - b1) * clip(g).
        adam_state = new_opt_state[1][0]
        np.testing.assert_allclose(
            np.asarray(adam_state.mu["w"]), [0.1, -0.05, -0.1], rtol=1e-5
        )
