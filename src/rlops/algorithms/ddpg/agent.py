"""Pure-functional DDPG (Deep Deterministic Policy Gradient) agent.

All methods are static pure functions — no mutable state anywhere.
State is threaded explicitly through ``DDPGState``.

Implements:
  - Deterministic tanh actor with epsilon-scaled uniform exploration
  - TD(0) critic regression against target actor/critic bootstraps
  - Element-wise gradient clipping ahead of Adam (via optax)
  - Soft target network updates (Polyak averaging)
  - Rejection of updates whose losses are non-finite

Usage::

    config = DDPGConfig()
    state = DDPG.init(rng, obs_shape=(3,), action_dim=1, config=config)
    action, state = DDPG.act(state, obs, config=config)
    state, metrics = DDPG.update(state, batch, config=config)
"""

from __future__ import annotations

import math
from collections.abc import Callable
from functools import partial
from typing import Any, NamedTuple

import chex
import equinox as eqx
import jax
import jax.numpy as jnp

from rlops.algorithms.ddpg.config import DDPGConfig
from rlops.algorithms.ddpg.network import Actor, Critic
from rlops.algorithms.ddpg.types import DDPGState
from rlops.dataprotocol.transition import Transition
from rlops.exploration import add_exploration_noise, decay_epsilon, uniform_action
from rlops.types import Params


class DDPGMetrics(NamedTuple):
    actor_loss: chex.Array
    critic_loss: chex.Array
    q_mean: chex.Array
    epsilon: chex.Array
    finite: chex.Array  # False when the update was rejected


def compute_gradients(
    loss_fn: Callable[[Params], Any],
    params: Params,
    *,
    has_aux: bool = False,
) -> tuple[Any, Params]:
    """Return ``(value, grads)`` of *loss_fn* w.r.t. the array leaves of *params*.

    With ``has_aux=True`` the value is ``(loss, aux)``.  This is the only
    place the agent touches autodiff.
    """
    return eqx.filter_value_and_grad(loss_fn, has_aux=has_aux)(params)


def soft_update(target: Params, online: Params, tau: float) -> Params:
    """Polyak averaging: ``target <- tau * online + (1 - tau) * target``.

    Only array leaves are blended; static structure is taken from *target*.
    """
    new_params = jax.tree.map(
        lambda t, o: tau * o + (1.0 - tau) * t,
        eqx.filter(target, eqx.is_array),
        eqx.filter(online, eqx.is_array),
    )
    return eqx.combine(
        new_params,
        eqx.filter(target, lambda x: not eqx.is_array(x)),
    )


class DDPG:
    """Namespace for DDPG pure functions.

    Not instantiated — all methods are static.
    """

    @staticmethod
    def init(
        rng: chex.PRNGKey,
        obs_shape: tuple[int, ...],
        action_dim: int,
        config: DDPGConfig,
    ) -> DDPGState:
        """Create initial DDPG state with fresh network parameters."""
        obs_dim = math.prod(obs_shape)
        k_actor, k_critic, k_state = jax.random.split(rng, 3)

        actor = Actor(
            obs_dim, action_dim, config.hidden_sizes,
            head_init=config.actor_head_init, key=k_actor,
        )
        critic = Critic(obs_dim, action_dim, config.hidden_sizes, key=k_critic)
        # Targets built from the same keys start as exact copies
        target_actor = Actor(
            obs_dim, action_dim, config.hidden_sizes,
            head_init=config.actor_head_init, key=k_actor,
        )
        target_critic = Critic(obs_dim, action_dim, config.hidden_sizes, key=k_critic)

        actor_opt_state = config.make_actor_optimizer().init(
            eqx.filter(actor, eqx.is_array)
        )
        critic_opt_state = config.make_critic_optimizer().init(
            eqx.filter(critic, eqx.is_array)
        )

        return DDPGState(
            actor_params=actor,
            critic_params=critic,
            target_actor_params=target_actor,
            target_critic_params=target_critic,
            actor_opt_state=actor_opt_state,
            critic_opt_state=critic_opt_state,
            epsilon=jnp.float32(config.epsilon_start),
            step=jnp.zeros((), dtype=jnp.int32),
            rng=k_state,
        )

    @staticmethod
    @partial(jax.jit, static_argnames=("config", "explore"))
    def act(
        state: DDPGState,
        obs: chex.Array,
        warmup: bool | chex.Array = False,
        *,
        config: DDPGConfig,
        explore: bool = True,
    ) -> tuple[chex.Array, DDPGState]:
        """Select an action (pure function).

        Args:
            state: Current DDPG state.
            obs: Single observation, shape ``(*obs_shape,)``.
            warmup: Traced flag; with ``config.random_warmup`` the actor is
                bypassed and a uniform action is drawn instead.
            config: DDPG hyperparameters (static).
            explore: If False, return the raw actor output.

        Returns:
            (action, new_state) — action shape ``(action_dim,)``, always
            inside ``[action_low, action_high]``.
        """
        rng, key = jax.random.split(state.rng)
        low, high = config.action_low, config.action_high
        policy_action = state.actor_params(obs)

        if explore:
            noisy = add_exploration_noise(key, policy_action, state.epsilon, low, high)
            random = uniform_action(key, policy_action.shape, low, high)
            use_random = jnp.logical_and(warmup, config.random_warmup)
            action = jnp.where(use_random, random, noisy)
        else:
            action = jnp.clip(policy_action, low, high)

        return action, state._replace(rng=rng)

    @staticmethod
    @partial(jax.jit, static_argnames=("config",))
    def update(
        state: DDPGState,
        batch: Transition,
        *,
        config: DDPGConfig,
    ) -> tuple[DDPGState, DDPGMetrics]:
        """One learning step on a batch of transitions (pure function).

        Performs, in order:
        1. Critic update on the TD(0) regression loss
        2. Actor update maximising Q(s, actor(s)) under the new critic
        3. Soft update of both target networks
        4. Epsilon decay

        If either loss is non-finite the incoming state is returned
        unchanged and ``metrics.finite`` is False.

        Args:
            state: Current DDPG state.
            batch: Batched transitions, each field has shape ``(B, ...)``.
            config: DDPG hyperparameters (static).

        Returns:
            (new_state, metrics) tuple.
        """
        # --- Critic update ---
        critic_optimizer = config.make_critic_optimizer()

        next_actions = jax.vmap(state.target_actor_params)(batch.next_obs)
        next_q = jax.vmap(state.target_critic_params)(batch.next_obs, next_actions)
        # Terminal transitions get no bootstrapped value
        targets = batch.reward + config.gamma * (1.0 - batch.done) * next_q
        targets = jax.lax.stop_gradient(targets)

        def critic_loss_fn(critic_params):
            q = jax.vmap(critic_params)(batch.obs, batch.action)
            return jnp.mean((targets - q) ** 2), jnp.mean(q)

        (critic_loss, q_mean), critic_grads = compute_gradients(
            critic_loss_fn, state.critic_params, has_aux=True
        )
        critic_updates, new_critic_opt_state = critic_optimizer.update(
            critic_grads,
            state.critic_opt_state,
            eqx.filter(state.critic_params, eqx.is_array),
        )
        new_critic_params = eqx.apply_updates(state.critic_params, critic_updates)

        # --- Actor update (critic fixed) ---
        actor_optimizer = config.make_actor_optimizer()

        def actor_loss_fn(actor_params):
            actions = jax.vmap(actor_params)(batch.obs)
            q = jax.vmap(new_critic_params)(batch.obs, actions)
            return -jnp.mean(q)

        actor_loss, actor_grads = compute_gradients(actor_loss_fn, state.actor_params)
        actor_updates, new_actor_opt_state = actor_optimizer.update(
            actor_grads,
            state.actor_opt_state,
            eqx.filter(state.actor_params, eqx.is_array),
        )
        new_actor_params = eqx.apply_updates(state.actor_params, actor_updates)

        # --- Soft target update (Polyak averaging) ---
        new_target_actor = soft_update(
            state.target_actor_params, new_actor_params, config.tau
        )
        new_target_critic = soft_update(
            state.target_critic_params, new_critic_params, config.tau
        )

        new_epsilon = decay_epsilon(
            state.epsilon, decay=config.epsilon_decay, floor=config.epsilon_min
        )

        candidate = DDPGState(
            actor_params=new_actor_params,
            critic_params=new_critic_params,
            target_actor_params=new_target_actor,
            target_critic_params=new_target_critic,
            actor_opt_state=new_actor_opt_state,
            critic_opt_state=new_critic_opt_state,
            epsilon=new_epsilon,
            step=state.step + 1,
            rng=state.rng,
        )

        finite = jnp.isfinite(critic_loss) & jnp.isfinite(actor_loss)
        new_state = jax.tree.map(
            lambda new, old: jnp.where(finite, new, old), candidate, state
        )

        metrics = DDPGMetrics(
            actor_loss=actor_loss,
            critic_loss=critic_loss,
            q_mean=q_mean,
            epsilon=new_state.epsilon,
            finite=finite,
        )
        return new_state, metrics
