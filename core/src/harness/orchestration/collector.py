from __future__ import annotations

import logging
import threading
from pathlib import Path

from harness.contracts.outcome import JobOutcome
from harness.contracts.summary import RunSummary
from harness.runtime.results import ResultStore


class DuplicateOutcomeError(RuntimeError):
    pass


class IncompleteRunError(RuntimeError):
    pass


class ResultCollector:
    """
    Single writer of the run tally and of each job's placement on disk.

    `record` is serialized behind a lock, so several threads may call it.
    """

    def __init__(self, *, total: int, store: ResultStore | None = None) -> None:
        self._total = total
        self._store = store
        self._outcomes: dict[str, JobOutcome] = {}
        self._placements: dict[str, Path] = {}
        self._lock = threading.Lock()

    @property
    def recorded(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def placement(self, job_id: str) -> Path | None:
        return self._placements.get(job_id)

    def record(self, outcome: JobOutcome) -> None:
        with self._lock:
            if outcome.job_id in self._outcomes:
                raise DuplicateOutcomeError(
                    f"Outcome for {outcome.job_id} recorded twice "
                    f"({self._outcomes[outcome.job_id].status}, then {outcome.status})"
                )
            self._outcomes[outcome.job_id] = outcome
            if self._store is not None:
                self._placements[outcome.job_id] = self._store.place(outcome)

        logging.getLogger("example_harness.results").debug(
            "Recorded %s as %s", outcome.job.short_name(), outcome.status
        )

    def finalize(self, *, aborted: bool = False) -> RunSummary:
        with self._lock:
            outcomes = list(self._outcomes.values())
        if len(outcomes) != self._total:
            raise IncompleteRunError(
                f"{len(outcomes)} outcome(s) recorded for a plan of {self._total} job(s)"
            )
        return RunSummary.from_outcomes(outcomes, aborted=aborted)
