"""Network surface for observers of a live training loop."""

from rlops.serving.websocket_server import TelemetryServer

__all__ = ["TelemetryServer"]
