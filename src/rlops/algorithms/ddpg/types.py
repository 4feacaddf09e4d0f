"""DDPG-specific state container."""

from __future__ import annotations

from typing import NamedTuple

import chex

from rlops.types import OptState, Params


class DDPGState(NamedTuple):
    """DDPG agent state.

    Fields:
        actor_params: Online actor (Equinox model).
        critic_params: Online critic (Equinox model).
        target_actor_params: Polyak-averaged copy of the actor.
        target_critic_params: Polyak-averaged copy of the critic.
        actor_opt_state: Optax optimizer state for the actor.
        critic_opt_state: Optax optimizer state for the critic.
        epsilon: Current exploration noise scale (scalar array).
        step: Number of applied learning updates.
        rng: PRNG key.
    """

    actor_params: Params
    critic_params: Params
    target_actor_params: Params
    target_critic_params: Params
    actor_opt_state: OptState
    critic_opt_state: OptState
    epsilon: chex.Array
    step: chex.Array
    rng: chex.PRNGKey
