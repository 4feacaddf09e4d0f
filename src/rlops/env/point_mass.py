"""Pure-JAX 1-D point-mass reaching task.

A mass sits on a line and must be driven onto a randomly placed
target.  Dynamics are deterministic momentum with drag; only the
reset is stochastic.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp

from rlops.env.base import Environment, EnvParams, EnvState
from rlops.env.spaces import Box
from rlops.types import SimState


class PointMassState(EnvState):
    position: jax.Array
    velocity: jax.Array
    target: jax.Array


class PointMassParams(EnvParams):
    # Dynamics
    drag: float = eqx.field(static=True, default=0.92)
    control_gain: float = eqx.field(static=True, default=0.1)
    spawn_range: float = eqx.field(static=True, default=0.9)
    out_of_bounds: float = eqx.field(static=True, default=2.8)
    # Observation normalisation
    position_scale: float = eqx.field(static=True, default=2.5)
    velocity_scale: float = eqx.field(static=True, default=1.0)
    # Reward shaping
    max_penalty: float = eqx.field(static=True, default=2.0)
    proximity_radius: float = eqx.field(static=True, default=0.1)
    proximity_bonus: float = eqx.field(static=True, default=0.5)
    goal_radius: float = eqx.field(static=True, default=0.05)
    goal_bonus: float = eqx.field(static=True, default=1.0)


class PointMass1D(Environment):
    """Drive a point mass onto a target on the real line.

    Observation: ``[position / 2.5, velocity / 1.0, (target - position) / 2.5]``
    Actions: continuous force in ``[-1, 1]`` (the caller clamps)
    Reward: ``max(-2, -distance)`` plus a proximity bonus inside
    ``proximity_radius`` and a goal bonus inside ``goal_radius``.

    The episode terminates when the mass reaches the goal radius or
    leaves ``[-out_of_bounds, out_of_bounds]``.
    """

    def default_params(self) -> PointMassParams:
        return PointMassParams()

    def reset(
        self,
        key: jax.Array,
        params: PointMassParams,
    ) -> tuple[jax.Array, PointMassState]:
        k1, k2 = jax.random.split(key)
        r = params.spawn_range
        position = jax.random.uniform(k1, shape=(), minval=-r, maxval=r)
        target = jax.random.uniform(k2, shape=(), minval=-r, maxval=r)
        state = PointMassState(
            position=position,
            velocity=jnp.float32(0.0),
            target=target,
            time=jnp.int32(0),
        )
        return self.observe(state, params), state

    def step(
        self,
        key: jax.Array,
        state: PointMassState,
        action: jax.Array,
        params: PointMassParams,
    ) -> tuple[jax.Array, PointMassState, jax.Array, jax.Array, dict[str, Any]]:
        # No clipping here: actions arrive pre-clamped from the exploration step.
        u = jnp.asarray(action, dtype=jnp.float32).reshape(())

        velocity = state.velocity * params.drag + u * params.control_gain
        position = state.position + velocity

        distance = jnp.abs(state.target - position)
        reward = jnp.maximum(-params.max_penalty, -distance)
        reward = reward + jnp.where(distance < params.proximity_radius, params.proximity_bonus, 0.0)
        reward = reward + jnp.where(distance < params.goal_radius, params.goal_bonus, 0.0)

        out_of_bounds = jnp.abs(position) > params.out_of_bounds
        done = (distance < params.goal_radius) | out_of_bounds

        new_state = PointMassState(
            position=position,
            velocity=velocity,
            target=state.target,
            time=state.time + 1,
        )
        return (
            self.observe(new_state, params),
            new_state,
            jnp.float32(reward),
            done,
            {"distance": distance, "out_of_bounds": out_of_bounds},
        )

    def observe(self, state: PointMassState, params: PointMassParams) -> jax.Array:
        return jnp.array(
            [
                state.position / params.position_scale,
                state.velocity / params.velocity_scale,
                (state.target - state.position) / params.position_scale,
            ],
            dtype=jnp.float32,
        )

    def observation_space(self, params: PointMassParams) -> Box:
        high = params.out_of_bounds / params.position_scale
        # Velocity is bounded by the drag fixed point: gain / (1 - drag).
        v_max = params.control_gain / (1.0 - params.drag) / params.velocity_scale
        bound = jnp.array([high, v_max, 2.0 * high], dtype=jnp.float32)
        return Box(low=-bound, high=bound)

    def action_space(self, params: PointMassParams) -> Box:
        return Box(low=-1.0, high=1.0, shape=(1,))


def to_sim_state(state: PointMassState) -> SimState:
    """Pull a device-side state back to a host ``SimState`` snapshot."""
    return SimState(
        position=float(state.position),
        velocity=float(state.velocity),
        target=float(state.target),
    )
