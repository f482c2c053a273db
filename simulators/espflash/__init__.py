from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from harness.contracts import BuildArtifact, SimulatorInfo

from simulators._common import CommandSimulator

from .config import EspflashOptions, default_options, parse_options, validate_options


class EspflashSimulator(CommandSimulator):
    """Flashes real hardware on a serial port and monitors it; one worker at a time."""

    def __init__(self, project_path: Path, options: EspflashOptions) -> None:
        super().__init__(project_path)
        self.options = options

    def command(self, artifact: BuildArtifact) -> list[str]:
        args = [self.options.executable, "flash", "-p", self.options.port]
        if self.options.monitor:
            args.append("--monitor")
        args.extend(self.options.extra_args)
        args.append(str(artifact.path))
        return args


class EspflashSimulatorPlugin:
    @property
    def info(self) -> SimulatorInfo:
        return SimulatorInfo(
            key="espflash",
            name="espflash",
            executable="espflash",
            description="Flashes an attached ESP board and captures its serial monitor.",
            max_parallelism=1,
        )

    def default_options(self) -> dict[str, Any]:
        return default_options()

    def validate_options(
        self, options: Mapping[str, Any], *, strict: bool = True
    ) -> dict[str, Any]:
        return validate_options(options, strict=strict)

    def create(self, project_path: Path, options: Mapping[str, Any]) -> EspflashSimulator:
        return EspflashSimulator(project_path, parse_options(options))
