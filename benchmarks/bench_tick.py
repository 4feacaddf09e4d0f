"""Benchmark: DDPG update cost and end-to-end tick throughput.

The live loop waits ``tick_interval`` (50 ms by default) between ticks,
so a tick has to stay well inside that budget for the observer to see
a steady stream.  Reports:

- ``DDPG.update`` with and without ``jax.jit``
- ``train_step`` during warmup (act + env step + store) and after it
  (act + env step + store + sample + update)

Usage::

    python benchmarks/bench_tick.py
"""

from __future__ import annotations

import time

import jax
import jax.numpy as jnp

from rlops.algorithms.ddpg import DDPG, DDPGConfig
from rlops.dataprotocol.transition import Transition
from rlops.env import make
from rlops.runner import RunnerConfig, TrainingContext, train_step


def _time_fn(fn, *args, warmup: int = 3, repeats: int = 50, **kwargs) -> float:
    """Time a function, returning seconds per call (excluding warmup)."""
    for _ in range(warmup):
        result = fn(*args, **kwargs)
        # Force completion for JAX async dispatch
        jax.tree.map(lambda x: x.block_until_ready() if hasattr(x, "block_until_ready") else x, result)

    start = time.perf_counter()
    for _ in range(repeats):
        result = fn(*args, **kwargs)
        jax.tree.map(lambda x: x.block_until_ready() if hasattr(x, "block_until_ready") else x, result)
    elapsed = time.perf_counter() - start
    return elapsed / repeats


def bench_update():
    """Benchmark DDPG update step: JIT vs no-JIT."""
    print("=" * 60)
    print("DDPG Update Step")
    print("=" * 60)

    config = DDPGConfig()
    rng = jax.random.PRNGKey(0)
    state = DDPG.init(rng, obs_shape=(3,), action_dim=1, config=config)

    k1, k2, k3, k4 = jax.random.split(rng, 4)
    batch = Transition(
        obs=jax.random.normal(k1, (config.batch_size, 3)),
        action=jax.random.uniform(k2, (config.batch_size, 1), minval=-1.0, maxval=1.0),
        reward=jax.random.normal(k3, (config.batch_size,)),
        next_obs=jax.random.normal(k4, (config.batch_size, 3)),
        done=jnp.zeros(config.batch_size),
    )

    t_jit = _time_fn(DDPG.update, state, batch, config=config)

    def _update_no_jit(state, batch, *, config):
        with jax.disable_jit():
            return DDPG.update.__wrapped__(state, batch, config=config)

    t_nojit = _time_fn(_update_no_jit, state, batch, config=config, warmup=1, repeats=5)

    speedup = t_nojit / t_jit if t_jit > 0 else float("inf")
    print(f"  JIT:    {t_jit * 1000:8.2f} ms/step")
    print(f"  No-JIT: {t_nojit * 1000:8.2f} ms/step")
    print(f"  Speedup: {speedup:.1f}x")
    print()


def bench_tick():
    """Benchmark full ticks before and after warmup."""
    print("=" * 60)
    print("Training Tick (train_step)")
    print("=" * 60)

    env, env_params = make("PointMass1D-v0")
    runner_config = RunnerConfig(warmup_steps=200, buffer_size=10_000)
    ctx = TrainingContext(
        env, env_params, ddpg_config=DDPGConfig(), runner_config=runner_config,
    )

    # Compile both code paths first
    for _ in range(runner_config.warmup_steps + 5):
        train_step(ctx)
    ctx.reset()

    start = time.perf_counter()
    for _ in range(runner_config.warmup_steps):
        train_step(ctx)
    t_warmup = (time.perf_counter() - start) / runner_config.warmup_steps

    n_learn = 200
    start = time.perf_counter()
    for _ in range(n_learn):
        train_step(ctx)
    t_learn = (time.perf_counter() - start) / n_learn

    budget = runner_config.tick_interval * 1000
    print(f"  Warmup tick:   {t_warmup * 1000:8.2f} ms")
    print(f"  Learning tick: {t_learn * 1000:8.2f} ms")
    print(f"  Tick interval: {budget:8.2f} ms")
    print(f"  Max live rate: {1.0 / (t_learn + runner_config.tick_interval):8.1f} ticks/s")
    print()


if __name__ == "__main__":
    print(f"JAX backend: {jax.default_backend()}")
    print(f"Devices: {jax.devices()}")
    print()

    bench_update()
    bench_tick()
