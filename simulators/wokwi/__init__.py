from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from harness.contracts import BuildArtifact, SimulatorInfo

from simulators._common import CommandSimulator, serial_log_path

from .config import WokwiOptions, default_options, parse_options, validate_options


class WokwiSimulator(CommandSimulator):
    """wokwi-cli judges the run against a per-example scenario file."""

    writes_serial_log = True

    def __init__(self, project_path: Path, options: WokwiOptions) -> None:
        super().__init__(project_path)
        self.options = options

    def scenario_path(self, artifact: BuildArtifact) -> Path:
        job = artifact.job
        return (
            self.project_path
            / self.options.scenarios_dir
            / job.variant
            / f"{job.example_name}.yaml"
        )

    def preflight(self, artifact: BuildArtifact) -> str | None:
        scenario = self.scenario_path(artifact)
        if not scenario.exists():
            return f"No wokwi scenario for {artifact.job.job_id} at {scenario}"
        return None

    def command(self, artifact: BuildArtifact) -> list[str]:
        return [
            self.options.executable,
            "--elf",
            str(artifact.path),
            "--scenario",
            str(self.scenario_path(artifact)),
            "--timeout",
            str(self.options.timeout_ms),
            "--serial-log-file",
            str(serial_log_path(artifact)),
            *self.options.extra_args,
        ]


class WokwiSimulatorPlugin:
    @property
    def info(self) -> SimulatorInfo:
        return SimulatorInfo(
            key="wokwi",
            name="Wokwi CLI",
            executable="wokwi-cli",
            description="Simulates the ELF in Wokwi and checks it against a scenario file.",
        )

    def default_options(self) -> dict[str, Any]:
        return default_options()

    def validate_options(
        self, options: Mapping[str, Any], *, strict: bool = True
    ) -> dict[str, Any]:
        return validate_options(options, strict=strict)

    def create(self, project_path: Path, options: Mapping[str, Any]) -> WokwiSimulator:
        return WokwiSimulator(project_path, parse_options(options))
