"""The single owned container for all mutable training state.

Everything a tick reads or writes (networks, optimizer states,
exploration epsilon, replay memory, current episode, step counter)
hangs off one ``TrainingContext``.  Orchestrators receive it
explicitly; nothing lives at module level, so two contexts can train
side by side and ``reset()`` is a complete wipe.
"""

from __future__ import annotations

import logging

import jax

from rlops.algorithms.ddpg.agent import DDPG
from rlops.algorithms.ddpg.config import DDPGConfig
from rlops.algorithms.ddpg.types import DDPGState
from rlops.dataprotocol.replay_buffer import ReplayBuffer
from rlops.env.base import EnvParams, EnvState, Environment
from rlops.env.point_mass import to_sim_state
from rlops.runner.config import RunnerConfig
from rlops.seeding import make_rng, numpy_seed, split_key
from rlops.types import SimState

logger = logging.getLogger(__name__)


class TrainingContext:
    """Mutable training state for one run.

    Parameters
    ----------
    env, env_params:
        Pure-JAX environment and its parameters.
    ddpg_config:
        Algorithm hyperparameters.
    runner_config:
        Seed, memory capacity and warmup length.
    obs_shape, action_dim:
        Inferred from the environment spaces when ``None``.
    """

    def __init__(
        self,
        env: Environment,
        env_params: EnvParams,
        *,
        ddpg_config: DDPGConfig,
        runner_config: RunnerConfig,
        obs_shape: tuple[int, ...] | None = None,
        action_dim: int | None = None,
    ) -> None:
        if obs_shape is None:
            obs_shape = env.observation_space(env_params).shape
        if action_dim is None:
            action_dim = env.action_space(env_params).shape[0]

        self.env = env
        self.env_params = env_params
        self.ddpg_config = ddpg_config
        self.runner_config = runner_config
        self.obs_shape = obs_shape
        self.action_dim = action_dim

        self._rng = make_rng(runner_config.seed)
        self._rng, buffer_key = split_key(self._rng)
        self.buffer = ReplayBuffer(
            capacity=runner_config.buffer_size,
            obs_shape=obs_shape,
            action_dim=action_dim,
            seed=numpy_seed(buffer_key),
        )

        self.agent_state: DDPGState
        self.env_state: EnvState
        self.obs: jax.Array
        self.step = 0
        self.episode_return = 0.0
        self.episode_length = 0
        self.episode_returns: list[float] = []
        self.reset()

    def reset(self) -> None:
        """Fresh networks, empty memory, epsilon back to its start, step 0.

        Keys are drawn from the context's key stream, so every reset
        yields new parameters while the whole run stays reproducible
        from ``runner_config.seed``.
        """
        self._rng, agent_key = split_key(self._rng)
        self.agent_state = DDPG.init(
            agent_key, self.obs_shape, self.action_dim, self.ddpg_config
        )
        self.buffer.clear()
        self.step = 0
        self.episode_returns = []
        self.new_episode()
        logger.info(
            "Training context reset (target=%.3f, position=%.3f)",
            self.sim_state.target,
            self.sim_state.position,
        )

    def new_episode(self) -> None:
        """Draw a fresh episode and make it the current one."""
        self._rng, env_key = split_key(self._rng)
        self.obs, self.env_state = self.env.reset(env_key, self.env_params)
        self.episode_return = 0.0
        self.episode_length = 0

    def end_episode(self) -> float:
        """Record the finished episode's return and start a new episode."""
        ep_return = self.episode_return
        self.episode_returns.append(ep_return)
        logger.debug(
            "Episode %d finished at step %d: return=%.3f length=%d",
            len(self.episode_returns),
            self.step,
            ep_return,
            self.episode_length,
        )
        self.new_episode()
        return ep_return

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def sim_state(self) -> SimState:
        return to_sim_state(self.env_state)

    @property
    def epsilon(self) -> float:
        return float(self.agent_state.epsilon)

    @property
    def warming_up(self) -> bool:
        return self.step <= self.runner_config.warmup_steps

    def __repr__(self) -> str:
        return (
            f"TrainingContext(step={self.step}, buffer={len(self.buffer)}, "
            f"epsilon={self.epsilon:.3f})"
        )
