from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from harness.contracts import BuildArtifact, SimulatorInfo

from simulators._common import CommandSimulator

from .config import QemuOptions, default_options, parse_options, validate_options


class QemuSimulator(CommandSimulator):
    def __init__(self, project_path: Path, options: QemuOptions) -> None:
        super().__init__(project_path)
        self.options = options

    def command(self, artifact: BuildArtifact) -> list[str]:
        args = [self.options.executable, "-machine", self.options.machine, "-nographic"]
        if self.options.bios is not None:
            args.extend(["-bios", self.options.bios])
        if self.options.semihosting:
            args.extend(["-semihosting-config", "enable=on,target=native"])
        args.extend(self.options.extra_args)
        args.extend(["-kernel", str(artifact.path)])
        return args


class QemuSimulatorPlugin:
    @property
    def info(self) -> SimulatorInfo:
        return SimulatorInfo(
            key="qemu",
            name="QEMU RISC-V",
            executable="qemu-system-riscv32",
            description="Boots the ELF in qemu-system-riscv32; the serial console is the log.",
        )

    def default_options(self) -> dict[str, Any]:
        return default_options()

    def validate_options(
        self, options: Mapping[str, Any], *, strict: bool = True
    ) -> dict[str, Any]:
        return validate_options(options, strict=strict)

    def create(self, project_path: Path, options: Mapping[str, Any]) -> QemuSimulator:
        return QemuSimulator(project_path, parse_options(options))
