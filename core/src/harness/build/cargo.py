from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from harness.contracts.plan import ExampleJob
from harness.contracts.toolchain import BuildArtifact, StepResult
from harness.runtime.process import run_command

DEFAULT_TARGET = "riscv32imac-unknown-none-elf"
BUILD_LOG_FILENAME = "build.log"


def artifact_path(project_path: Path, job: ExampleJob, *, target: str = DEFAULT_TARGET) -> Path:
    """Where cargo leaves the ELF for an example in a given profile."""
    return project_path / "target" / target / job.variant / "examples" / job.example_name


class CargoBuilder:
    """Compiles one example with `cargo build --example <name> [--release]`."""

    def __init__(
        self,
        project_path: Path,
        *,
        target: str = DEFAULT_TARGET,
        cargo: str = "cargo",
        extra_args: Sequence[str] = (),
    ) -> None:
        self.project_path = project_path
        self.target = target
        self.cargo = cargo
        self.extra_args = tuple(extra_args)

    def command(self, job: ExampleJob) -> list[str]:
        args = [self.cargo, "build", "--example", job.example_name]
        if job.variant == "release":
            args.append("--release")
        args.extend(self.extra_args)
        return args

    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult:
        log_path = work_dir / BUILD_LOG_FILENAME
        result = run_command(self.command(job), cwd=self.project_path, log_path=log_path)
        if not result.ok:
            return StepResult(
                status="failed",
                log=result.output,
                duration_s=result.duration_s,
                files=(log_path,),
            )

        elf = artifact_path(self.project_path, job, target=self.target)
        if not elf.exists():
            return StepResult(
                status="infra-error",
                log=result.output + f"\nBuild succeeded but {elf} does not exist\n",
                duration_s=result.duration_s,
                files=(log_path,),
            )
        return StepResult(
            status="ok",
            log=result.output,
            duration_s=result.duration_s,
            artifact=BuildArtifact(job=job, path=elf, work_dir=work_dir),
            files=(log_path,),
        )


class PrebuiltArtifactBuilder:
    """Skip-build mode: trusts an earlier build and only locates its artifact."""

    def __init__(self, project_path: Path, *, target: str = DEFAULT_TARGET) -> None:
        self.project_path = project_path
        self.target = target

    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult:
        elf = artifact_path(self.project_path, job, target=self.target)
        if not elf.exists():
            return StepResult(
                status="infra-error",
                log=f"Build skipped, but no prebuilt artifact at {elf}\n",
            )
        return StepResult(
            status="ok",
            log=f"Build skipped, using {elf}\n",
            artifact=BuildArtifact(job=job, path=elf, work_dir=work_dir),
        )
