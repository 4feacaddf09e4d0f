"""Hybrid DDPG training step and headless runner.

Off-policy training needs a mutable replay buffer that cannot live
inside ``lax.scan``, so the design is:

- **Outer loop**: Python — pushes transitions into the buffer, decides
  whether a learning update runs, handles episode resets and logging.
- **Inner steps**: ``jax.jit``-compiled ``DDPG.act`` + ``env.step`` and
  ``DDPG.update``.

``train_step`` performs exactly one tick on a :class:`TrainingContext`.
The live orchestrator (:mod:`rlops.runner.loop`) and the headless
``train_ddpg`` both drive training through it.

Usage::

    from rlops.algorithms.ddpg import DDPGConfig
    from rlops.env import make
    from rlops.runner import RunnerConfig, train_ddpg

    env, env_params = make("PointMass1D-v0")
    result = train_ddpg(
        env, env_params,
        ddpg_config=DDPGConfig(),
        runner_config=RunnerConfig(total_timesteps=20_000),
    )
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import NamedTuple

import chex
import jax
import numpy as np

from rlops.algorithms.ddpg.agent import DDPG
from rlops.algorithms.ddpg.config import DDPGConfig
from rlops.algorithms.ddpg.types import DDPGState
from rlops.env.base import EnvParams, EnvState, Environment
from rlops.env.point_mass import to_sim_state
from rlops.metrics import MetricsLogger, log_step_progress
from rlops.run_dir import RunDir
from rlops.runner.config import RunnerConfig
from rlops.runner.context import TrainingContext
from rlops.types import SimState, TrainingMetric

logger = logging.getLogger(__name__)


class TickResult(NamedTuple):
    """Everything one tick publishes."""

    metric: TrainingMetric
    sim_state: SimState  # state reached by the step, before any episode reset
    done: bool


class DDPGTrainResult(NamedTuple):
    """Return value from ``train_ddpg``."""

    agent_state: DDPGState
    episode_returns: list[float]
    metrics_log: list[dict[str, float]]


@partial(jax.jit, static_argnames=("env_step_fn", "config"))
def _act_and_step(
    agent_state: DDPGState,
    obs: chex.Array,
    env_state: EnvState,
    warmup: chex.Array,
    env_step_fn: Callable,
    env_params: EnvParams,
    *,
    config: DDPGConfig,
) -> tuple[DDPGState, chex.Array, EnvState, chex.Array, chex.Array, chex.Array]:
    """JIT-compiled: select an exploratory action + step the environment."""
    action, agent_state = DDPG.act(agent_state, obs, warmup, config=config, explore=True)
    rng, step_key = jax.random.split(agent_state.rng)
    agent_state = agent_state._replace(rng=rng)
    next_obs, new_env_state, reward, done, _info = env_step_fn(
        step_key, env_state, action, env_params,
    )
    return agent_state, next_obs, new_env_state, action, reward, done


def train_step(ctx: TrainingContext) -> TickResult:
    """Run one tick: act, step, store, maybe learn, handle episode end.

    Learning runs only once the step counter has passed
    ``warmup_steps`` and the replay memory can fill a batch; otherwise
    the metric reports zero losses.
    """
    ddpg_config = ctx.ddpg_config
    warmup_steps = ctx.runner_config.warmup_steps

    ctx.step += 1
    step = ctx.step

    agent_state, next_obs, env_state, action, reward, done = _act_and_step(
        ctx.agent_state, ctx.obs, ctx.env_state, step <= warmup_steps,
        ctx.env.step, ctx.env_params, config=ddpg_config,
    )
    reward = float(reward)
    done = bool(done)

    ctx.buffer.push(
        np.asarray(ctx.obs), np.asarray(action), reward, np.asarray(next_obs), done,
    )

    critic_loss = actor_loss = q_value = 0.0
    if step > warmup_steps:
        batch = ctx.buffer.sample(ddpg_config.batch_size)
        if batch is not None:
            agent_state, metrics = DDPG.update(agent_state, batch, config=ddpg_config)
            if bool(metrics.finite):
                critic_loss = float(metrics.critic_loss)
                actor_loss = float(metrics.actor_loss)
                q_value = float(metrics.q_mean)
            else:
                logger.warning(
                    "Non-finite loss at step %d (critic=%s, actor=%s); update rejected",
                    step,
                    float(metrics.critic_loss),
                    float(metrics.actor_loss),
                )
    elif step == warmup_steps:
        logger.info("Warmup complete after %d steps; updates starting", step)

    ctx.agent_state = agent_state
    ctx.episode_return += reward
    ctx.episode_length += 1
    sim_state = to_sim_state(env_state)
    if done:
        ctx.end_episode()
    else:
        ctx.obs, ctx.env_state = next_obs, env_state

    metric = TrainingMetric(
        step=step,
        reward=reward,
        critic_loss=critic_loss,
        actor_loss=actor_loss,
        q_value=q_value,
    )
    return TickResult(metric=metric, sim_state=sim_state, done=done)


def train_ddpg(
    env: Environment,
    env_params: EnvParams,
    *,
    ddpg_config: DDPGConfig,
    runner_config: RunnerConfig,
    callback: Callable | None = None,
    run_dir: RunDir | None = None,
) -> DDPGTrainResult:
    """Train DDPG for ``runner_config.total_timesteps`` ticks, no scheduler.

    Args:
        env: Pure-JAX environment.
        env_params: Environment parameters.
        ddpg_config: DDPG algorithm hyperparameters.
        runner_config: Outer-loop settings.
        callback: Optional ``callback(step, agent_state, record)`` called
            every ``log_interval`` steps.
        run_dir: Optional :class:`~rlops.run_dir.RunDir`; when provided,
            metrics are written to ``<run_dir>/logs/metrics.jsonl``.

    Returns:
        ``DDPGTrainResult`` with final agent state, episode returns, and
        the periodic metrics log.
    """
    ctx = TrainingContext(
        env, env_params, ddpg_config=ddpg_config, runner_config=runner_config,
    )
    metrics_logger = (
        MetricsLogger(run_dir.log_path()) if run_dir is not None else None
    )

    metrics_log: list[dict[str, float]] = []
    total = runner_config.total_timesteps
    logger.info("Starting DDPG training for %d steps", total)

    try:
        for _ in range(total):
            result = train_step(ctx)
            step = result.metric.step

            if result.done and metrics_logger is not None:
                metrics_logger.write({
                    "step": step,
                    "episode_return": ctx.episode_returns[-1],
                })

            if step % runner_config.log_interval == 0:
                record = {
                    **result.metric._asdict(),
                    "epsilon": ctx.epsilon,
                    "buffer_size": len(ctx.buffer),
                    "episodes": len(ctx.episode_returns),
                }
                metrics_log.append(record)
                if metrics_logger is not None:
                    metrics_logger.write(record)
                log_step_progress(step, total, record)
                if callback is not None:
                    callback(step, ctx.agent_state, record)
    finally:
        if metrics_logger is not None:
            metrics_logger.close()

    return DDPGTrainResult(
        agent_state=ctx.agent_state,
        episode_returns=list(ctx.episode_returns),
        metrics_log=metrics_log,
    )
