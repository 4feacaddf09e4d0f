#!/usr/bin/env python3
"""Run the live training loop behind the WebSocket telemetry server.

Training starts idle; a client sends ``{"command": "start"}`` to begin.
Set ``GEMINI_API_KEY`` to enable the ``advise`` command.

Usage::

    python scripts/serve.py pointmass_ddpg
    python scripts/serve.py pointmass_ddpg --port 9000 --autostart
    python scripts/serve.py pointmass_ddpg --runner.tick_interval 0.01
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field

import tyro

from rlops.configs.presets import PRESETS, TrainConfig

logger = logging.getLogger("rlops.scripts.serve")


@dataclass(frozen=True)
class ServeConfig:
    """Configuration for the telemetry serving script."""

    # Training setup: select a preset
    config: TrainConfig = field(default_factory=TrainConfig)

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8765

    # Start ticking immediately instead of waiting for a client command
    autostart: bool = False

    # Advisor model name (only used when GEMINI_API_KEY is set)
    advisor_model: str = "gemini-1.5-flash"


async def _serve(server, autostart: bool) -> None:
    if autostart:
        server.loop.start()
    await server.run()


def main() -> None:
    from rlops.metrics import setup_logging

    setup_logging()

    serve_config = tyro.extras.overridable_config_cli(
        {
            name: (desc, ServeConfig(config=cfg))
            for name, (desc, cfg) in PRESETS.items()
        },
        use_underscores=True,
    )

    from rlops.advisor import GeminiAdvisor
    from rlops.env import make
    from rlops.runner import TrainingContext, TrainingLoop
    from rlops.serving import TelemetryServer

    cfg = serve_config.config
    env, env_params = make(cfg.env_id)
    context = TrainingContext(
        env, env_params, ddpg_config=cfg.ddpg, runner_config=cfg.runner,
    )
    loop = TrainingLoop(context)

    api_key = os.environ.get("GEMINI_API_KEY")
    advisor = None
    if api_key:
        advisor = GeminiAdvisor(api_key, model=serve_config.advisor_model)
    else:
        logger.warning("GEMINI_API_KEY not set; the advise command is disabled")

    server = TelemetryServer(
        loop=loop,
        advisor=advisor,
        host=serve_config.host,
        port=serve_config.port,
    )
    asyncio.run(_serve(server, serve_config.autostart))


if __name__ == "__main__":
    main()
