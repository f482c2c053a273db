from __future__ import annotations

import logging
import threading
from typing import Literal

from harness.contracts.outcome import JobOutcome
from harness.contracts.summary import OverallStatus, RunSummary

RunState = Literal["running", "aborting", "finished"]


class TerminationSignal:
    """
    Shared "stop picking up new work" flag.

    Set at most once and never unset. Workers only read it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: str | None = None

    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def set(self, reason: str) -> bool:
        """Raise the flag. Returns False if it was already raised."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True


class RunController:
    """Run-level continue/abort policy: running -> aborting -> finished."""

    def __init__(
        self,
        *,
        continue_on_error: bool = False,
        signal: TerminationSignal | None = None,
    ) -> None:
        self.continue_on_error = continue_on_error
        self.signal = signal if signal is not None else TerminationSignal()
        self._state: RunState = "running"
        self._lock = threading.Lock()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def aborted(self) -> bool:
        return self.signal.is_set()

    def observe(self, outcome: JobOutcome) -> None:
        if not outcome.failed:
            return
        if self.continue_on_error:
            logging.getLogger("example_harness.run").info(
                "%s %s; continuing", outcome.job.short_name(), outcome.status
            )
            return
        with self._lock:
            if self._state != "running":
                return
            self._state = "aborting"
        self.signal.set(f"{outcome.job_id} {outcome.status}")
        logging.getLogger("example_harness.run").warning(
            "%s %s; no further jobs will be dispatched",
            outcome.job.short_name(),
            outcome.status,
        )

    def finish(self) -> None:
        with self._lock:
            self._state = "finished"

    def overall_status(self, summary: RunSummary) -> OverallStatus:
        if summary.any_failed:
            return "failed"
        if summary.skipped and not self.continue_on_error:
            return "failed"
        return "passed"
