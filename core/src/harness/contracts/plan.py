from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

Variant = Literal["debug", "release"]

VARIANTS: tuple[Variant, ...] = ("debug", "release")


class PlanValidationError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class ExampleJob:
    """
    One (example, build variant) unit of work.

    Created by discovery, consumed read-only by the worker pool.
    """

    index: int
    project: str
    variant: Variant

    @property
    def example_name(self) -> str:
        return Path(self.project).stem

    @property
    def job_id(self) -> str:
        """Stable identifier, also the job's directory name in the results tree."""
        return f"{self.example_name}-{self.variant}"

    def short_name(self) -> str:
        return f"#{self.index} {self.job_id}"


@dataclass(frozen=True, slots=True)
class ExamplePlan:
    jobs: tuple[ExampleJob, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        errors: list[str] = []
        seen: set[str] = set()
        for position, job in enumerate(self.jobs):
            if job.index != position:
                errors.append(f"job {job.job_id} has index {job.index}, expected {position}")
            if job.job_id in seen:
                errors.append(f"duplicate job id {job.job_id}")
            seen.add(job.job_id)
        if errors:
            raise PlanValidationError("; ".join(errors))

    def __len__(self) -> int:
        return len(self.jobs)

    def __iter__(self) -> Iterator[ExampleJob]:
        return iter(self.jobs)

    def __getitem__(self, index: int) -> ExampleJob:
        return self.jobs[index]

    @classmethod
    def from_examples(
        cls,
        examples: Iterable[str | Path],
        *,
        variants: Sequence[Variant] = VARIANTS,
    ) -> ExamplePlan:
        """Expand each example into one job per variant, keeping the given order."""
        jobs: list[ExampleJob] = []
        for example in examples:
            for variant in variants:
                jobs.append(ExampleJob(index=len(jobs), project=str(example), variant=variant))
        return cls(jobs=tuple(jobs))
