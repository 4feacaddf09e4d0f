"""DDPG networks implemented with Equinox.

Actor: obs -> deterministic action in [-1, 1].
Critic: (obs, action) -> scalar Q-value.  The action joins after the
first (observation-only) hidden layer.
"""

from __future__ import annotations

import equinox as eqx
import jax
import jax.numpy as jnp

# eqx.nn.Linear stores weights as (out_features, in_features).
_he_normal = jax.nn.initializers.he_normal(in_axis=-1, out_axis=-2)


def _he_linear(in_features: int, out_features: int, key: jax.Array) -> eqx.nn.Linear:
    """Linear layer with He-normal weights and a zero bias."""
    init_key, w_key = jax.random.split(key)
    layer = eqx.nn.Linear(in_features, out_features, key=init_key)
    weight = _he_normal(w_key, layer.weight.shape, jnp.float32)
    return eqx.tree_at(
        lambda l: (l.weight, l.bias), layer, (weight, jnp.zeros_like(layer.bias))
    )


class Actor(eqx.Module):
    """Deterministic policy: obs -> tanh-squashed action."""

    layers: list
    head: eqx.nn.Linear

    def __init__(
        self,
        obs_dim: int,
        action_dim: int,
        hidden_sizes: tuple[int, ...] = (128, 128),
        *,
        head_init: float = 3e-3,
        key: jax.Array,
    ) -> None:
        dims = [obs_dim, *hidden_sizes]
        n_layers = len(dims) - 1
        keys = jax.random.split(key, n_layers + 2)

        self.layers = [
            _he_linear(d_in, d_out, k)
            for d_in, d_out, k in zip(dims[:-1], dims[1:], keys[:n_layers], strict=True)
        ]
        # Small head so the initial policy outputs near-zero actions.
        head = eqx.nn.Linear(dims[-1], action_dim, key=keys[n_layers])
        weight = jax.random.uniform(
            keys[n_layers + 1], head.weight.shape, minval=-head_init, maxval=head_init
        )
        self.head = eqx.tree_at(
            lambda l: (l.weight, l.bias), head, (weight, jnp.zeros_like(head.bias))
        )

    def __call__(self, obs: jax.Array) -> jax.Array:
        """Forward pass.

        Args:
            obs: Observation array, shape ``(obs_dim,)``.

        Returns:
            Action of shape ``(action_dim,)`` in ``[-1, 1]``.
        """
        x = obs
        for layer in self.layers:
            x = jax.nn.relu(layer(x))
        return jnp.tanh(self.head(x))


class Critic(eqx.Module):
    """Q-network: (obs, action) -> scalar value estimate."""

    obs_layer: eqx.nn.Linear
    joint_layer: eqx.nn.Linear
    head: eqx.nn.Linear

    def __init__(
        self,
        obs_dim: int,
        action_dim: int,
        hidden_sizes: tuple[int, int] = (128, 128),
        *,
        key: jax.Array,
    ) -> None:
        k1, k2, k3 = jax.random.split(key, 3)
        obs_hidden, joint_hidden = hidden_sizes
        self.obs_layer = _he_linear(obs_dim, obs_hidden, k1)
        self.joint_layer = _he_linear(obs_hidden + action_dim, joint_hidden, k2)
        self.head = eqx.nn.Linear(joint_hidden, 1, key=k3)

    def __call__(self, obs: jax.Array, action: jax.Array) -> jax.Array:
        """Forward pass.

        Args:
            obs: shape ``(obs_dim,)``.
            action: shape ``(action_dim,)``.

        Returns:
            Scalar Q-value (shape ``()``).
        """
        x = jax.nn.relu(self.obs_layer(obs))
        x = jnp.concatenate([x, action], axis=-1)
        x = jax.nn.relu(self.joint_layer(x))
        return self.head(x).squeeze(-1)
