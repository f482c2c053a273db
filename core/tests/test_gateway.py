from __future__ import annotations

from pathlib import Path

from harness.contracts import BuildArtifact, ExampleJob, StepResult
from harness.orchestration import CommandToolchainGateway
from harness.runtime import ToolLaunchError


class _Builder:
    def __init__(self, *, result: StepResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = 0

    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


class _Simulator:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error

    def simulate(self, artifact: BuildArtifact) -> StepResult:
        if self.error is not None:
            raise self.error
        return StepResult(status="ok", log="serial ok\n")


def _job(variant: str = "debug") -> ExampleJob:
    return ExampleJob(index=0, project="examples/blink.rs", variant=variant)  # type: ignore


def test_launch_failure_becomes_infra_error(tmp_path):
    builder = _Builder(error=ToolLaunchError("Failed to launch cargo: not found"))
    gateway = CommandToolchainGateway(builder, _Simulator())

    result = gateway.build(_job(), work_dir=tmp_path)

    assert result.status == "infra-error"
    assert "Failed to launch cargo" in result.log


def test_unexpected_exception_becomes_infra_error_with_traceback(tmp_path):
    gateway = CommandToolchainGateway(_Builder(error=ValueError("bad state")), _Simulator())

    result = gateway.build(_job(), work_dir=tmp_path)

    assert result.status == "infra-error"
    assert "build raised ValueError: bad state" in result.log
    assert "Traceback" in result.log


def test_unknown_variant_never_reaches_the_builder(tmp_path):
    builder = _Builder(result=StepResult(status="ok"))
    gateway = CommandToolchainGateway(builder, _Simulator())

    result = gateway.build(_job("profile"), work_dir=tmp_path)

    assert result.status == "infra-error"
    assert "unknown variant 'profile'" in result.log
    assert builder.calls == 0


def test_success_without_artifact_is_infra_error(tmp_path):
    gateway = CommandToolchainGateway(_Builder(result=StepResult(status="ok")), _Simulator())

    result = gateway.build(_job(), work_dir=tmp_path)

    assert result.status == "infra-error"
    assert "without an artifact" in result.log


def test_build_failure_passes_through(tmp_path):
    failed = StepResult(status="failed", log="error[E0425]\n")
    gateway = CommandToolchainGateway(_Builder(result=failed), _Simulator())

    assert gateway.build(_job(), work_dir=tmp_path) is failed


def test_simulator_exception_becomes_infra_error(tmp_path):
    gateway = CommandToolchainGateway(
        _Builder(result=StepResult(status="ok")), _Simulator(error=OSError("port busy"))
    )
    artifact = BuildArtifact(job=_job(), path=tmp_path / "blink", work_dir=tmp_path)

    result = gateway.simulate(artifact)

    assert result.status == "infra-error"
    assert "simulate raised OSError: port busy" in result.log
