"""Output directory management for training runs.

``RunDir`` creates and exposes the directory layout of one run::

    runs/
    └── pointmass_ddpg_20260215_143022/
        ├── config.json
        ├── logs/
        │   └── metrics.jsonl
        └── artifacts/
            └── final_report.json

Usage::

    run = RunDir("pointmass_ddpg", base_dir="runs")
    run.save_config(config)          # snapshot frozen dataclass / dict
    run.log_path("metrics.jsonl")    # Path inside logs/
    run.artifact_path("final_report.json")
"""

from __future__ import annotations

import dataclasses
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


def _timestamp() -> str:
    return datetime.now(tz=UTC).strftime("%Y%m%d_%H%M%S")


class RunDir:
    """A lightweight handle for a single run's output directory.

    Parameters
    ----------
    experiment_name:
        Human-readable name (e.g. ``"pointmass_ddpg"``). Combined with a
        UTC timestamp to form the run directory name.
    base_dir:
        Parent directory for all runs. Defaults to ``"runs"``.
    run_id:
        Explicit run directory name, bypassing auto-generation.
    """

    def __init__(
        self,
        experiment_name: str = "default",
        base_dir: str | Path = "runs",
        *,
        run_id: str | None = None,
    ) -> None:
        self._base_dir = Path(base_dir)
        dirname = run_id if run_id is not None else f"{experiment_name}_{_timestamp()}"
        self._root = self._base_dir / dirname

        for subdir in ("logs", "artifacts"):
            (self._root / subdir).mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        """Top-level run directory."""
        return self._root

    @property
    def logs(self) -> Path:
        """Directory for metric logs."""
        return self._root / "logs"

    @property
    def artifacts(self) -> Path:
        """Directory for miscellaneous outputs (reports, advice)."""
        return self._root / "artifacts"

    def log_path(self, filename: str = "metrics.jsonl") -> Path:
        """Return a path inside ``logs/``."""
        return self.logs / filename

    def artifact_path(self, filename: str) -> Path:
        """Return a path inside ``artifacts/``."""
        return self.artifacts / filename

    def save_config(self, config: Any, filename: str = "config.json") -> Path:
        """Serialize *config* to JSON in the run root.

        Accepts frozen dataclasses or plain dicts.  Returns the path to
        the written file.
        """
        path = self._root / filename
        data = _config_to_dict(config)
        path.write_text(json.dumps(data, indent=2, default=str) + "\n")
        return path

    def load_config(self, filename: str = "config.json") -> dict[str, Any]:
        """Load a previously saved config snapshot."""
        path = self._root / filename
        return json.loads(path.read_text())

    def __repr__(self) -> str:
        return f"RunDir({self._root})"

    def __fspath__(self) -> str:
        return str(self._root)


def _config_to_dict(obj: Any) -> Any:
    """Recursively convert a config object to plain JSON-able values."""
    if isinstance(obj, dict):
        return {k: _config_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: _config_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (list, tuple)):
        return [_config_to_dict(v) for v in obj]
    return obj
