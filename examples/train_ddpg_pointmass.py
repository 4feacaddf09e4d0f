"""Train DDPG on the 1-D point mass without the runner.

Shows the raw pieces the runner wires together: the pure-JAX
environment, ``DDPG.act`` / ``DDPG.update`` and the numpy replay
buffer, followed by a deterministic evaluation.

Usage::

    python examples/train_ddpg_pointmass.py
"""

from __future__ import annotations

import numpy as np

import jax
import jax.numpy as jnp

from rlops.algorithms.ddpg import DDPG, DDPGConfig
from rlops.dataprotocol.replay_buffer import ReplayBuffer
from rlops.env import make


def main() -> None:
    seed = 42
    total_steps = 20_000
    eval_every = 2_000
    warmup_steps = 250

    config = DDPGConfig()

    env, env_params = make("PointMass1D-v0")

    rng = jax.random.PRNGKey(seed)
    rng, env_key, agent_key = jax.random.split(rng, 3)

    obs, env_state = env.reset(env_key, env_params)
    state = DDPG.init(agent_key, obs_shape=(3,), action_dim=1, config=config)

    buffer = ReplayBuffer(capacity=10_000, obs_shape=(3,), action_dim=1, seed=seed)

    for step in range(1, total_steps + 1):
        action, state = DDPG.act(state, obs, step <= warmup_steps, config=config)

        rng, step_key = jax.random.split(rng)
        next_obs, env_state, reward, done, info = env.step(
            step_key, env_state, action, env_params,
        )

        buffer.push(
            obs=np.asarray(obs),
            action=np.asarray(action),
            reward=float(reward),
            next_obs=np.asarray(next_obs),
            done=bool(done),
        )

        if bool(done):
            rng, reset_key = jax.random.split(rng)
            obs, env_state = env.reset(reset_key, env_params)
        else:
            obs = next_obs

        if step > warmup_steps:
            batch = buffer.sample(config.batch_size)
            if batch is not None:
                state, metrics = DDPG.update(state, batch, config=config)

        if step % eval_every == 0:
            final_distances = _evaluate(state, env, env_params, config, rng)
            print(
                f"Step {step:6d} | "
                f"epsilon={float(state.epsilon):.3f} | "
                f"final_distance={float(jnp.mean(final_distances)):.3f}"
            )

    print("Training complete.")


def _evaluate(
    state,
    env,
    env_params,
    config: DDPGConfig,
    rng,
    n_episodes: int = 5,
    max_steps: int = 200,
) -> jax.Array:
    """Run greedy episodes and return the final distance to target."""
    distances = []
    for _ in range(n_episodes):
        rng, eval_key = jax.random.split(rng)
        obs, env_state = env.reset(eval_key, env_params)
        distance = jnp.abs(env_state.target - env_state.position)
        for _ in range(max_steps):
            action, _ = DDPG.act(state, obs, config=config, explore=False)
            rng, step_key = jax.random.split(rng)
            obs, env_state, _, done, info = env.step(
                step_key, env_state, action, env_params,
            )
            distance = info["distance"]
            if bool(done):
                break
        distances.append(distance)
    return jnp.array(distances)


if __name__ == "__main__":
    main()
