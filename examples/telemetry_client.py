#!/usr/bin/env python3
"""Example WebSocket client for the TelemetryServer.

Connects to a running server, starts training, prints the metric
stream for a while, optionally asks for advice, then stops training.

Requirements::

    pip install websockets msgpack

Usage::

    # Terminal 1: start the server
    python scripts/serve.py pointmass_ddpg

    # Terminal 2: run this client
    python examples/telemetry_client.py
    python examples/telemetry_client.py --n_metrics 500 --advise
    python examples/telemetry_client.py --url ws://remote:8765
"""

from __future__ import annotations

import argparse
import asyncio

import msgpack
import websockets


def encode_command(command: str) -> bytes:
    return msgpack.packb({"command": command}, use_bin_type=True)


def decode_message(data: bytes) -> dict:
    return msgpack.unpackb(data, raw=False)


async def run_client(url: str, *, n_metrics: int = 100, advise: bool = False) -> None:
    """Start training and print ``n_metrics`` metric frames."""
    async with websockets.connect(url) as ws:
        print(f"Connected to {url}")
        await ws.send(encode_command("start"))

        seen = 0
        while seen < n_metrics:
            msg = decode_message(await ws.recv())
            if msg["type"] == "metric":
                seen += 1
                print(
                    f"step {msg['step']:6d} | reward={msg['reward']:+.3f} | "
                    f"critic={msg['critic_loss']:.4f} | actor={msg['actor_loss']:+.4f} | "
                    f"q={msg['q_value']:+.3f}"
                )
            elif msg["type"] in ("status", "error"):
                print(msg)

        if advise:
            await ws.send(encode_command("advise"))
            while True:
                msg = decode_message(await ws.recv())
                if msg["type"] == "advice":
                    print(msg["text"])
                    break
                if msg["type"] == "error":
                    print(msg["message"])
                    break

        await ws.send(encode_command("stop"))
        print("Done.")


def main() -> None:
    parser = argparse.ArgumentParser(description="TelemetryServer test client")
    parser.add_argument("--url", default="ws://localhost:8765", help="Server URL")
    parser.add_argument(
        "--n_metrics", type=int, default=100, help="Number of metrics to print"
    )
    parser.add_argument(
        "--advise", action="store_true", help="Request an analysis at the end"
    )
    args = parser.parse_args()
    asyncio.run(run_client(args.url, n_metrics=args.n_metrics, advise=args.advise))


if __name__ == "__main__":
    main()
