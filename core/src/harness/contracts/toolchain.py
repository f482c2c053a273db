from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

from harness.contracts.plan import ExampleJob

StepStatus = Literal["ok", "failed", "infra-error"]


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    """Compiled firmware image for one job, plus the job's private working directory."""

    job: ExampleJob
    path: Path
    work_dir: Path


@dataclass(frozen=True, slots=True)
class StepResult:
    """
    Outcome of one toolchain call (build or simulate).

    Gateways return this instead of raising on non-zero exit.
    """

    status: StepStatus
    log: str = ""
    duration_s: float = 0.0

    # Set by a successful build only
    artifact: BuildArtifact | None = None

    # Diagnostic files the step wrote into the job's working directory
    files: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@runtime_checkable
class Builder(Protocol):
    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult:
        """Compile one job. May raise; the gateway translates exceptions."""
        ...


@runtime_checkable
class Simulator(Protocol):
    def simulate(self, artifact: BuildArtifact) -> StepResult:
        """Run a compiled artifact and judge it. May raise; the gateway translates exceptions."""
        ...


@dataclass(frozen=True, slots=True)
class SimulatorInfo:
    key: str
    name: str
    executable: str
    description: str | None = None
    max_parallelism: int | None = None


@runtime_checkable
class SimulatorPlugin(Protocol):
    """
    Factory for one simulation service (wokwi, qemu, ...).

    Owns the defaults and validation of its own options block.
    """

    @property
    def info(self) -> SimulatorInfo: ...

    def default_options(self) -> Mapping[str, Any]:
        """Return plugin-owned default options payload."""
        ...

    def validate_options(
        self, options: Mapping[str, Any], *, strict: bool = True
    ) -> Mapping[str, Any]:
        """Validate options payload and return normalized values."""
        ...

    def create(self, project_path: Path, options: Mapping[str, Any]) -> Simulator:
        """Build a simulator bound to a project checkout."""
        ...


@runtime_checkable
class ToolchainGateway(Protocol):
    """
    Blocking, exception-free boundary around the build and simulate tools.
    """

    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult: ...

    def simulate(self, artifact: BuildArtifact) -> StepResult: ...
