"""Tests for rlops.run_dir."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from rlops.algorithms.ddpg import DDPGConfig
from rlops.configs import TrainConfig
from rlops.run_dir import RunDir


class TestRunDir:
    """Core RunDir functionality."""

    def test_creates_standard_subdirs(self, tmp_path: Path) -> None:
        run = RunDir("exp", base_dir=tmp_path)
        assert run.logs.is_dir()
        assert run.artifacts.is_dir()

    def test_dirname_contains_experiment_name(self, tmp_path: Path) -> None:
        run = RunDir("pointmass_ddpg", base_dir=tmp_path)
        assert run.root.name.startswith("pointmass_ddpg_")

    def test_explicit_run_id(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="fixed_name")
        assert run.root.name == "fixed_name"
        assert run.root.parent == tmp_path

    def test_log_path(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r1")
        assert run.log_path() == run.logs / "metrics.jsonl"
        assert run.log_path("episodes.jsonl") == run.logs / "episodes.jsonl"

    def test_artifact_path(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r1")
        assert run.artifact_path("final_report.json") == run.artifacts / "final_report.json"

    def test_str_and_fspath(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r1")
        assert os.fspath(run) == str(run.root)
        assert "RunDir" in repr(run)

    def test_existing_dir_reused(self, tmp_path: Path) -> None:
        RunDir(base_dir=tmp_path, run_id="r1")
        run = RunDir(base_dir=tmp_path, run_id="r1")
        assert run.logs.is_dir()


class TestConfigSnapshot:
    """Config save/load round-trip."""

    def test_save_and_load_dict(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r1")
        run.save_config({"tau": 0.005, "hidden_sizes": [128, 128]})

        loaded = run.load_config()
        assert loaded["tau"] == 0.005
        assert loaded["hidden_sizes"] == [128, 128]

    def test_save_nested_dataclass(self, tmp_path: Path) -> None:
        @dataclass(frozen=True)
        class Inner:
            x: int = 1

        @dataclass(frozen=True)
        class Outer:
            inner: Inner = Inner()
            name: str = "test"

        run = RunDir(base_dir=tmp_path, run_id="r1")
        run.save_config(Outer())

        loaded = run.load_config()
        assert loaded["inner"]["x"] == 1
        assert loaded["name"] == "test"

    def test_save_train_config(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r1")
        run.save_config(TrainConfig(ddpg=DDPGConfig(tau=0.01)))

        loaded = run.load_config()
        assert loaded["env_id"] == "PointMass1D-v0"
        assert loaded["ddpg"]["tau"] == 0.01
        assert loaded["ddpg"]["hidden_sizes"] == [128, 128]  # tuple -> list in JSON
        assert loaded["runner"]["warmup_steps"] == 250

    def test_save_custom_filename(self, tmp_path: Path) -> None:
        run = RunDir(base_dir=tmp_path, run_id="r1")
        path = run.save_config({"a": 1}, filename="custom.json")
        assert path.name == "custom.json"
        assert json.loads(path.read_text()) == {"a": 1}
