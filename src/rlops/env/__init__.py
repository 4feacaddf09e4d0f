"""Pure-JAX environment module.

Quick start::

    import jax
    from rlops.env import make

    env, params = make("PointMass1D-v0")
    key = jax.random.PRNGKey(0)
    obs, state = env.reset(key, params)
    obs, state, reward, done, info = env.step(key, state, jnp.array([0.5]), params)
"""

from rlops.env.base import Environment, EnvParams, EnvState
from rlops.env.point_mass import PointMass1D, PointMassParams, PointMassState, to_sim_state
from rlops.env.spaces import Box

# ---- Registry ----

_REGISTRY: dict[str, type[Environment]] = {
    "PointMass1D-v0": PointMass1D,
}


def register(name: str, cls: type[Environment]) -> None:
    """Register a custom environment class under *name*."""
    _REGISTRY[name] = cls


def make(name: str, **kwargs: object) -> tuple[Environment, EnvParams]:
    """Create an environment and its default params by name.

    Built-in names: ``"PointMass1D-v0"``.

    Returns:
        ``(env, params)`` tuple ready for ``env.reset(key, params)``.
    """
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown environment {name!r}. Available: {available}")
    env = _REGISTRY[name](**kwargs)
    return env, env.default_params()


__all__ = [
    # Base
    "Environment",
    "EnvState",
    "EnvParams",
    # Spaces
    "Box",
    # Environments
    "PointMass1D",
    "PointMassParams",
    "PointMassState",
    "to_sim_state",
    # Registry
    "make",
    "register",
]
