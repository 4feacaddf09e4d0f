"""Async WebSocket telemetry server.

Streams the training loop's metric and state streams to every
connected client and accepts lifecycle commands.  Also exposes an HTTP
``/healthz`` endpoint.

Protocol
--------
All frames are MessagePack-encoded dicts with string keys.

Server -> client::

    {"type": "metric", "step": 812, "reward": -0.41, "critic_loss": 0.02,
     "actor_loss": 0.37, "q_value": -0.35, "epsilon": 0.21}
    {"type": "state", "position": 0.12, "velocity": -0.01, "target": 0.3}
    {"type": "status", "status": "running", "step": 812, "buffer_size": 812,
     "epsilon": 0.21, "warming_up": false}
    {"type": "advice", "text": "..."}
    {"type": "error", "message": "..."}

Client -> server::

    {"command": "start" | "stop" | "reset" | "advise"}

Usage::

    server = TelemetryServer(loop, advisor=advisor, port=8765)
    await server.run()              # or server.run_blocking()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from rlops.advisor import ADVICE_WINDOW, Advisor, request_advice
from rlops.metrics import MetricsWindow
from rlops.runner.loop import TrainingLoop
from rlops.types import SimState, TrainingMetric

logger = logging.getLogger(__name__)

# The advisor needs some history before it has anything to say.
MIN_ADVICE_METRICS = 20


def _require(module_name: str):
    """Import an optional dependency and raise a clear error if missing."""
    try:
        return __import__(module_name)
    except ImportError:
        raise ImportError(
            f"{module_name} is required for the serving module. "
            f"Install it with: pip install 'rlops[serving]'"
        ) from None


@dataclass
class TelemetryServer:
    """Async WebSocket server fronting a :class:`TrainingLoop`.

    Parameters
    ----------
    loop:
        The training loop whose streams are broadcast.
    advisor:
        Optional :class:`~rlops.advisor.Advisor` used for ``advise``.
    host:
        Bind address.
    port:
        Bind port.
    window_size:
        How many recent metrics are kept for late joiners and advice.
    """

    loop: TrainingLoop
    advisor: Advisor | None = None
    host: str = "0.0.0.0"
    port: int = 8765
    window_size: int = 200

    _clients: set = field(default_factory=set, init=False, repr=False)
    _window: MetricsWindow = field(init=False, repr=False)
    _advice_task: asyncio.Task | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._window = MetricsWindow(self.window_size)
        self.loop.subscribe(on_metric=self._on_metric, on_state=self._on_state)

    # --- public API --------------------------------------------------------

    def run_blocking(self) -> None:
        """Start the server (blocking).  Use from ``if __name__``."""
        asyncio.run(self.run())

    async def run(self) -> None:
        """Start the server (async)."""
        websockets = _require("websockets")

        server = await websockets.serve(
            self._handle_ws,
            self.host,
            self.port,
            process_request=self._handle_http,
        )
        logger.info("TelemetryServer listening on ws://%s:%d", self.host, self.port)
        try:
            await server.wait_closed()
        finally:
            self.loop.stop()

    @property
    def window(self) -> MetricsWindow:
        return self._window

    # --- stream listeners ----------------------------------------------------

    def _on_metric(self, metric: TrainingMetric) -> None:
        self._window.append(metric)
        self._broadcast({
            "type": "metric",
            **metric._asdict(),
            "epsilon": self.loop.context.epsilon,
        })

    def _on_state(self, state: SimState) -> None:
        self._broadcast({"type": "state", **state._asdict()})

    def _broadcast(self, message: dict[str, Any]) -> None:
        if not self._clients:
            return
        websockets = _require("websockets")
        websockets.broadcast(self._clients, _encode(message))

    def _status_message(self) -> dict[str, Any]:
        ctx = self.loop.context
        return {
            "type": "status",
            "status": self.loop.status.value,
            "step": ctx.step,
            "buffer_size": len(ctx.buffer),
            "epsilon": ctx.epsilon,
            "warming_up": ctx.warming_up,
        }

    # --- WebSocket handler -------------------------------------------------

    async def _handle_ws(self, websocket) -> None:
        """Handle a single WebSocket connection."""
        logger.info("Client connected: %s", websocket.remote_address)
        self._clients.add(websocket)
        try:
            await websocket.send(_encode(self._status_message()))
            for metric in self._window.recent():
                await websocket.send(_encode({"type": "metric", **metric._asdict()}))
            await websocket.send(
                _encode({"type": "state", **self.loop.context.sim_state._asdict()})
            )

            async for raw in websocket:
                try:
                    command = _decode_command(raw)
                except ValueError as e:
                    await websocket.send(_encode({"type": "error", "message": str(e)}))
                    continue
                await self._dispatch(command, websocket)
        except Exception:
            logger.exception("Error handling client %s", websocket.remote_address)
        finally:
            self._clients.discard(websocket)
            logger.info("Client disconnected: %s", websocket.remote_address)

    async def _dispatch(self, command: str, websocket) -> None:
        if command == "start":
            self.loop.start()
        elif command == "stop":
            self.loop.stop()
        elif command == "reset":
            await self.loop.reset()
            self._window.clear()
        elif command == "advise":
            error = self._start_advice()
            if error is not None:
                await websocket.send(_encode({"type": "error", "message": error}))
                return
        else:
            await websocket.send(
                _encode({"type": "error", "message": f"Unknown command {command!r}"})
            )
            return
        self._broadcast(self._status_message())

    # --- advice --------------------------------------------------------------

    def _start_advice(self) -> str | None:
        """Kick off an advice request; return an error message if refused."""
        if self.advisor is None:
            return "No advisor configured"
        if len(self._window) < MIN_ADVICE_METRICS:
            return f"Need at least {MIN_ADVICE_METRICS} metrics for analysis"
        if self._advice_task is not None and not self._advice_task.done():
            return "Analysis already in progress"
        snapshot = self._window.recent(ADVICE_WINDOW)
        self._advice_task = asyncio.get_running_loop().create_task(
            self._advise(snapshot)
        )
        return None

    async def _advise(self, snapshot: tuple[TrainingMetric, ...]) -> None:
        text = await asyncio.to_thread(request_advice, self.advisor, snapshot)
        self._broadcast({"type": "advice", "text": text})

    # --- HTTP health check -------------------------------------------------

    def _handle_http(self, connection, request):
        """Respond to ``/healthz`` with a small JSON status document.

        Uses the websockets v14+ ``process_request`` signature:
        ``(connection, request) -> Response | None``.
        """
        from websockets.datastructures import Headers
        from websockets.http11 import Response

        if request.path == "/healthz":
            ctx = self.loop.context
            body = json.dumps({
                "status": self.loop.status.value,
                "step": ctx.step,
                "clients": len(self._clients),
            }).encode() + b"\n"
            return Response(
                200,
                "OK",
                Headers([("Content-Type", "application/json")]),
                body,
            )
        # Return None to proceed with WebSocket handshake
        return None


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _encode(message: dict[str, Any]) -> bytes:
    """Encode an outgoing message as MessagePack."""
    msgpack = _require("msgpack")
    return msgpack.packb(message, use_bin_type=True)


def _decode_command(raw: bytes | str) -> str:
    """Extract the command name from an incoming frame.

    Raises ``ValueError`` for frames that aren't a MessagePack map with
    a string ``command`` field.
    """
    msgpack = _require("msgpack")
    if isinstance(raw, str):
        raise ValueError("Expected a binary MessagePack frame")
    try:
        payload = msgpack.unpackb(raw, raw=False)
    except Exception as e:
        raise ValueError(f"Malformed frame: {e}") from None
    if not isinstance(payload, dict) or not isinstance(payload.get("command"), str):
        raise ValueError("Frame must be a map with a string 'command' field")
    return payload["command"]
