from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from harness.contracts.plan import ExampleJob

Stage = Literal["build", "simulate"]
JobStatus = Literal["passed", "build-failed", "simulate-failed", "infra-error", "skipped"]

JOB_STATUSES: tuple[JobStatus, ...] = (
    "passed",
    "build-failed",
    "simulate-failed",
    "infra-error",
    "skipped",
)

SKIPPED_LOG = "Skipped: the run aborted before this job was dispatched.\n"


@dataclass(frozen=True, slots=True)
class JobOutcome:
    """
    Terminal result of one job.

    Created exactly once per job by the worker that ran it; the collector owns it afterwards.
    """

    job: ExampleJob
    stage: Stage
    status: JobStatus

    log: str = ""
    duration_s: float = 0.0
    build_duration_s: float = 0.0
    simulate_duration_s: float = 0.0

    started_at_utc: str | None = None
    ended_at_utc: str | None = None

    # Diagnostic files left in the job's working directory (build log, serial log, ...)
    files: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def job_id(self) -> str:
        return self.job.job_id

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        """True for jobs that ran and did not pass."""
        return not self.passed and not self.skipped

    @classmethod
    def skipped_for(cls, job: ExampleJob) -> JobOutcome:
        return cls(job=job, stage="build", status="skipped", log=SKIPPED_LOG)
