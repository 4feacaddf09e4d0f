"""Functional environment interface for pure-JAX RL.

Follows the Gymnax-style API where all functions are pure
(no hidden state mutation) and compatible with jit/vmap.

Core pattern::

    env = PointMass1D()
    params = env.default_params()
    key = jax.random.PRNGKey(0)

    obs, state = env.reset(key, params)
    obs, state, reward, done, info = env.step(key, state, action, params)

The caller owns the returned state; "the current state" of an episode
is whatever state the caller threads into the next ``step``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import equinox as eqx
import jax

from rlops.env.spaces import Box


class EnvState(eqx.Module):
    """Base class for environment states.

    All environment states must be registered JAX PyTrees (eqx.Module
    achieves this automatically). States must be immutable — step()
    returns a *new* state rather than mutating in place.
    """

    time: jax.Array  # current timestep within the episode


class EnvParams(eqx.Module):
    """Base class for environment parameters.

    Parameters are separated from state so they can be shared across
    episodes and swapped without touching the dynamics code.
    """


class Environment(ABC):
    """Abstract base for pure-JAX environments.

    Subclasses implement:
    - ``reset(key, params) -> (obs, state)``
    - ``step(key, state, action, params) -> (obs, state, reward, done, info)``
    - ``observe(state, params) -> obs``
    - ``default_params() -> EnvParams``
    - ``observation_space(params) -> Box``
    - ``action_space(params) -> Box``
    """

    @abstractmethod
    def reset(
        self,
        key: jax.Array,
        params: EnvParams,
    ) -> tuple[jax.Array, EnvState]:
        """Reset the environment and return ``(obs, state)``."""
        ...

    @abstractmethod
    def step(
        self,
        key: jax.Array,
        state: EnvState,
        action: jax.Array,
        params: EnvParams,
    ) -> tuple[jax.Array, EnvState, jax.Array, jax.Array, dict[str, Any]]:
        """Advance one timestep.

        Returns:
            ``(obs, state, reward, done, info)``.
        """
        ...

    @abstractmethod
    def observe(self, state: EnvState, params: EnvParams) -> jax.Array:
        """Derive the observation vector from *state* (pure)."""
        ...

    @abstractmethod
    def default_params(self) -> EnvParams:
        """Return the default environment parameters."""
        ...

    @abstractmethod
    def observation_space(self, params: EnvParams) -> Box:
        """Return the observation space (may depend on params)."""
        ...

    @abstractmethod
    def action_space(self, params: EnvParams) -> Box:
        """Return the action space (may depend on params)."""
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__
