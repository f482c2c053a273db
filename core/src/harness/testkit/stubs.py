from __future__ import annotations

import threading
import time
from collections.abc import Collection, Mapping
from pathlib import Path
from typing import Any

from harness.contracts import (
    BuildArtifact,
    ExampleJob,
    Simulator,
    SimulatorInfo,
    StepResult,
    StepStatus,
)


class ScriptedGateway:
    """
    Deterministic ToolchainGateway for tests.

    Every step succeeds unless its job id is scripted otherwise. Ids listed in `raise_on`
    make build raise, which breaks the gateway contract on purpose.
    """

    def __init__(
        self,
        *,
        build: Mapping[str, StepStatus] | None = None,
        simulate: Mapping[str, StepStatus] | None = None,
        delay_s: float | Mapping[str, float] = 0.0,
        raise_on: Collection[str] = (),
    ) -> None:
        self._build = dict(build or {})
        self._simulate = dict(simulate or {})
        self._delay_s = delay_s
        self._raise_on = set(raise_on)
        self._lock = threading.Lock()
        self._calls: list[tuple[str, str]] = []
        self._active = 0
        self.max_active = 0

    @property
    def calls(self) -> list[tuple[str, str]]:
        with self._lock:
            return list(self._calls)

    def built(self) -> list[str]:
        return [job_id for stage, job_id in self.calls if stage == "build"]

    def simulated(self) -> list[str]:
        return [job_id for stage, job_id in self.calls if stage == "simulate"]

    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult:
        self._enter("build", job)
        try:
            if job.job_id in self._raise_on:
                raise RuntimeError(f"scripted crash in {job.job_id}")
            status = self._build.get(job.job_id, "ok")
            log_path = work_dir / "build.log"
            log_path.write_text(f"build {job.job_id}: {status}\n", encoding="utf-8")
            artifact = None
            if status == "ok":
                artifact = BuildArtifact(job=job, path=work_dir / "firmware.elf", work_dir=work_dir)
            return StepResult(
                status=status,
                log=f"build {job.job_id}: {status}\n",
                artifact=artifact,
                files=(log_path,),
            )
        finally:
            self._exit()

    def simulate(self, artifact: BuildArtifact) -> StepResult:
        job = artifact.job
        self._enter("simulate", job)
        try:
            status = self._simulate.get(job.job_id, "ok")
            serial_log = artifact.work_dir / f"{job.job_id}.txt"
            serial_log.write_text(f"serial {job.job_id}: {status}\n", encoding="utf-8")
            return StepResult(
                status=status,
                log=f"simulate {job.job_id}: {status}\n",
                files=(serial_log,),
            )
        finally:
            self._exit()

    def _enter(self, stage: str, job: ExampleJob) -> None:
        with self._lock:
            self._calls.append((stage, job.job_id))
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        delay = self._delay_s
        if isinstance(delay, Mapping):
            delay = delay.get(job.job_id, 0.0)
        if delay:
            time.sleep(delay)

    def _exit(self) -> None:
        with self._lock:
            self._active -= 1


class EchoSimulator:
    """Passes every artifact; used by the dummy plugin."""

    def __init__(self, project_path: Path, options: Mapping[str, Any]) -> None:
        self.project_path = project_path
        self.options = dict(options)

    def simulate(self, artifact: BuildArtifact) -> StepResult:
        return StepResult(status="ok", log=f"echo {artifact.path}\n")


class DummySimulatorPlugin:
    @property
    def info(self) -> SimulatorInfo:
        return SimulatorInfo(key="dummy", name="Dummy Simulator", executable="true")

    def default_options(self) -> dict[str, Any]:
        return {"verbose": False}

    def validate_options(
        self, options: Mapping[str, Any], *, strict: bool = True
    ) -> dict[str, Any]:
        payload = dict(options)
        if strict:
            unknown = sorted(set(payload) - {"verbose"})
            if unknown:
                raise ValueError(f"unknown options {unknown}")
        payload["verbose"] = bool(payload.get("verbose", False))
        return payload

    def create(self, project_path: Path, options: Mapping[str, Any]) -> Simulator:
        return EchoSimulator(project_path, options)
