"""Structured logging for training runs.

Three pieces:

- :func:`setup_logging` / :func:`log_step_progress` — compact console
  output on the ``rlops`` logger.
- :class:`MetricsLogger` — append-only JSONL file, one record per line.
- :class:`MetricsWindow` — the rolling window of recent
  ``TrainingMetric`` records that observers (charts, advisor) read.

Usage::

    from rlops.metrics import MetricsLogger, setup_logging

    setup_logging()
    with MetricsLogger(run.log_path()) as metrics:
        metrics.write({"step": 1000, "critic_loss": 0.42, "reward": -0.3})
"""

from __future__ import annotations

import json
import logging
import time
from collections import deque
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any

import jax.numpy as jnp
import numpy as np

from rlops.types import TrainingMetric

# ---------------------------------------------------------------------------
# Structured console logging
# ---------------------------------------------------------------------------

_LEVEL_ABBREV = {
    logging.DEBUG: "D",
    logging.INFO: "I",
    logging.WARNING: "W",
    logging.ERROR: "E",
    logging.CRITICAL: "C",
}


class _TrainFormatter(logging.Formatter):
    """Compact formatter: abbreviated level + millisecond timestamp.

    Example output::

        I 2026-02-15 14:30:22.123 [rlops.runner.loop] Training loop started
    """

    def format(self, record: logging.LogRecord) -> str:
        lvl = _LEVEL_ABBREV.get(record.levelno, "?")
        ts = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        ms = int(record.msecs)
        msg = record.getMessage()
        line = f"{lvl} {ts}.{ms:03d} [{record.name}] {msg}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the ``rlops`` logger with compact formatting.

    Installs a :class:`~logging.StreamHandler` on the ``"rlops"``
    logger with abbreviated level names (D/I/W/E/C) and millisecond
    timestamps.  Safe to call multiple times — existing handlers are
    replaced.
    """
    logger = logging.getLogger("rlops")
    logger.setLevel(level)

    # Remove previous handlers to avoid duplicates on repeated calls.
    for h in logger.handlers[:]:
        logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(_TrainFormatter())
    logger.addHandler(handler)
    logger.propagate = False


def log_step_progress(
    step: int,
    total_steps: int,
    metrics: dict[str, Any] | None = None,
    logger_name: str = "rlops",
) -> None:
    """Log a one-line training progress message.

    Example output::

        I 2026-02-15 14:30:22.123 [rlops] step 5000/20000 (25.0%) | critic_loss=0.042 reward=-0.31
    """
    pct = 100.0 * step / total_steps if total_steps > 0 else 0.0
    parts = [f"step {step}/{total_steps} ({pct:.1f}%)"]
    if metrics:
        kv = " ".join(
            f"{k}={_to_python(v):.4g}" if isinstance(v, float) else f"{k}={_to_python(v)}"
            for k, v in metrics.items()
            if k not in ("step", "wall_time")
        )
        if kv:
            parts.append(kv)
    logging.getLogger(logger_name).info(" | ".join(parts))


# ---------------------------------------------------------------------------
# JSONL file logger
# ---------------------------------------------------------------------------


class MetricsLogger:
    """Append-only JSONL logger.

    Parameters
    ----------
    path:
        Path to the JSONL file.  Parent directories are created
        automatically.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: IO[str] = open(self._path, "a")  # noqa: SIM115
        self._start_time = time.monotonic()

    def write(self, record: dict[str, Any]) -> None:
        """Write a single metrics record as one JSON line.

        Automatically adds ``wall_time`` (seconds since logger creation)
        if not already present.  JAX/numpy scalars are converted to
        Python numbers.
        """
        row = {k: _to_python(v) for k, v in record.items()}
        if "wall_time" not in row:
            row["wall_time"] = round(time.monotonic() - self._start_time, 3)
        self._file.write(json.dumps(row, default=str) + "\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> MetricsLogger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MetricsLogger({self._path})"


def read_metrics(path: str | Path) -> list[dict[str, Any]]:
    """Read all records from a JSONL metrics file."""
    p = Path(path)
    if not p.exists():
        return []
    records = []
    for line in p.read_text().splitlines():
        line = line.strip()
        if line:
            records.append(json.loads(line))
    return records


def _to_python(val: Any) -> Any:
    """Convert JAX/numpy scalars to plain Python types for JSON."""
    if isinstance(val, (jnp.ndarray, np.ndarray)):
        return val.item()
    if isinstance(val, (np.integer, np.floating)):
        return val.item()
    return val


# ---------------------------------------------------------------------------
# Rolling window of the metric stream
# ---------------------------------------------------------------------------


class MetricsWindow:
    """Bounded, in-order window over the most recent training metrics.

    Pass :meth:`append` as a metric listener.  Readers get tuples, so a
    snapshot handed to another thread can't change underneath it.
    """

    def __init__(self, maxlen: int = 200) -> None:
        self._items: deque[TrainingMetric] = deque(maxlen=maxlen)

    def append(self, metric: TrainingMetric) -> None:
        self._items.append(metric)

    def recent(self, n: int | None = None) -> tuple[TrainingMetric, ...]:
        """The last *n* metrics (all held metrics when ``None``), oldest first."""
        items = tuple(self._items)
        return items if n is None else items[-n:]

    def clear(self) -> None:
        self._items.clear()

    @property
    def maxlen(self) -> int:
        return self._items.maxlen or 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TrainingMetric]:
        return iter(self.recent())
