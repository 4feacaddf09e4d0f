"""Live, self-rescheduling training loop.

``TrainingLoop`` drives :func:`~rlops.runner.train_ddpg.train_step` on
an asyncio event loop.  Each tick runs in a worker thread
(``asyncio.to_thread``) so the event loop keeps serving clients, and
the next tick is only scheduled after the previous one has fully
committed its writes to the context.  There is never more than one
tick in flight.

Lifecycle::

    IDLE --start()--> RUNNING --stop()--> IDLE
    any  --reset()--> IDLE (context wiped)

``stop()`` takes effect at tick granularity: a tick already running
finishes and publishes, but no further tick is scheduled.

Usage::

    loop = TrainingLoop(context, tick_interval=0.05)
    loop.subscribe(on_metric=window.append, on_state=render)
    loop.start()
    ...
    loop.stop()
    await loop.wait_idle()
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Callable

from rlops.runner.context import TrainingContext
from rlops.runner.train_ddpg import TickResult, train_step
from rlops.types import SimState, TrainingMetric

logger = logging.getLogger(__name__)

MetricListener = Callable[[TrainingMetric], None]
StateListener = Callable[[SimState], None]


class LoopStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class TrainingLoop:
    """Asyncio orchestrator owning one :class:`TrainingContext`.

    Parameters
    ----------
    context:
        The training state this loop drives.  Nothing else should
        mutate it while the loop is running.
    tick_interval:
        Pause between the end of one tick and the start of the next,
        in seconds.  Defaults to ``context.runner_config.tick_interval``.
    """

    def __init__(
        self,
        context: TrainingContext,
        *,
        tick_interval: float | None = None,
    ) -> None:
        self.context = context
        self.tick_interval = (
            context.runner_config.tick_interval if tick_interval is None else tick_interval
        )
        self._status = LoopStatus.IDLE
        self._task: asyncio.Task | None = None
        self._resetting = False
        self._metric_listeners: list[MetricListener] = []
        self._state_listeners: list[StateListener] = []

    # --- stream subscription ----------------------------------------------

    def subscribe(
        self,
        on_metric: MetricListener | None = None,
        on_state: StateListener | None = None,
    ) -> None:
        """Register listeners for the metric and/or state streams.

        Listeners run on the event loop thread, once per tick, in step
        order.
        """
        if on_metric is not None:
            self._metric_listeners.append(on_metric)
        if on_state is not None:
            self._state_listeners.append(on_state)

    # --- lifecycle ----------------------------------------------------------

    @property
    def status(self) -> LoopStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._status is LoopStatus.RUNNING

    def start(self) -> None:
        """IDLE -> RUNNING.  No-op when already running.

        Must be called from inside a running event loop.
        """
        if self._status is LoopStatus.RUNNING:
            return
        if self._resetting:
            logger.info("Ignoring start() while a reset is in progress")
            return
        self._status = LoopStatus.RUNNING
        if self._task is not None and not self._task.done():
            # A stopped task is still finishing its last tick; it will
            # see RUNNING again and carry on instead of exiting.
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Training loop started at step %d", self.context.step)

    def stop(self) -> None:
        """RUNNING -> IDLE.  No-op when idle."""
        if self._status is LoopStatus.IDLE:
            return
        self._status = LoopStatus.IDLE
        logger.info("Training loop stopped at step %d", self.context.step)

    async def wait_idle(self) -> None:
        """Wait for the loop task to exit.  Call after :meth:`stop`."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def reset(self) -> None:
        """Stop, wait for the in-flight tick, then wipe the context.

        Valid in any state, including after a crashed tick.  ``start()``
        is ignored until the wipe has happened.
        """
        self._resetting = True
        try:
            self.stop()
            if self._task is not None:
                # A crash was already logged by _run.
                with contextlib.suppress(Exception):
                    await asyncio.shield(self._task)
                self._task = None
            self.context.reset()
        finally:
            self._resetting = False
        self._publish_state(self.context.sim_state)

    # --- internals ------------------------------------------------------------

    async def _run(self) -> None:
        try:
            while self._status is LoopStatus.RUNNING:
                result = await asyncio.to_thread(train_step, self.context)
                self._publish(result)
                if self._status is LoopStatus.RUNNING:
                    await asyncio.sleep(self.tick_interval)
        except Exception:
            self._status = LoopStatus.IDLE
            logger.exception("Training loop crashed at step %d", self.context.step)
            raise

    def _publish(self, result: TickResult) -> None:
        for listener in self._metric_listeners:
            try:
                listener(result.metric)
            except Exception:
                logger.exception("Metric listener %r failed", listener)
        self._publish_state(result.sim_state)
        if result.done:
            self._publish_state(self.context.sim_state)

    def _publish_state(self, state: SimState) -> None:
        for listener in self._state_listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def __repr__(self) -> str:
        return f"TrainingLoop(status={self._status.value}, step={self.context.step})"
