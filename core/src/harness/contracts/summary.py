from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from harness.contracts.outcome import JOB_STATUSES, JobOutcome, JobStatus

OverallStatus = Literal["passed", "failed"]


@dataclass(frozen=True, slots=True)
class RunSummary:
    """
    Aggregate over every outcome of a run.

    Keep this stable: the CLI and the tracking layer only read these fields.
    """

    total: int
    passed: int
    build_failed: int
    simulate_failed: int
    infra_error: int
    skipped: int
    aborted: bool

    build_duration_s: float = 0.0
    simulate_duration_s: float = 0.0

    # Ordered by job index
    outcomes: Sequence[JobOutcome] = field(default_factory=tuple)

    @property
    def failed(self) -> int:
        return self.build_failed + self.simulate_failed + self.infra_error

    @property
    def any_failed(self) -> bool:
        return self.failed > 0

    @property
    def status(self) -> OverallStatus:
        return "failed" if self.any_failed or self.skipped else "passed"

    def count(self, status: JobStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    def counts(self) -> dict[str, int]:
        return {
            "passed": self.passed,
            "build-failed": self.build_failed,
            "simulate-failed": self.simulate_failed,
            "infra-error": self.infra_error,
            "skipped": self.skipped,
        }

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[JobOutcome], *, aborted: bool) -> RunSummary:
        ordered = tuple(sorted(outcomes, key=lambda outcome: outcome.job.index))
        tally: dict[JobStatus, int] = dict.fromkeys(JOB_STATUSES, 0)
        for outcome in ordered:
            tally[outcome.status] += 1
        return cls(
            total=len(ordered),
            passed=tally["passed"],
            build_failed=tally["build-failed"],
            simulate_failed=tally["simulate-failed"],
            infra_error=tally["infra-error"],
            skipped=tally["skipped"],
            aborted=aborted,
            build_duration_s=sum(outcome.build_duration_s for outcome in ordered),
            simulate_duration_s=sum(outcome.simulate_duration_s for outcome in ordered),
            outcomes=ordered,
        )
