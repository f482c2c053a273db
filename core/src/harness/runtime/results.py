from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from harness.contracts.outcome import JobOutcome
from harness.contracts.plan import ExampleJob
from harness.contracts.summary import RunSummary
from harness.runtime.artifacts import job_work_dir

PASSED_DIRNAME = "passed"
FAILED_DIRNAME = "failed"
LOG_FILENAME = "log.txt"
METADATA_FILENAME = "outcome.json"
SUMMARY_RELPATH = Path("summary") / "run_summary.json"

_RESERVED_FILENAMES = {LOG_FILENAME, METADATA_FILENAME}


class ResultStore:
    """
    On-disk layout of a run's results.

        <root>/passed/<job_id>/
        <root>/failed/<status>/<job_id>/
        <root>/summary/run_summary.json

    Every job directory holds log.txt, outcome.json and the job's diagnostic files.
    """

    def __init__(self, output_root: Path) -> None:
        self.output_root = output_root

    @property
    def passed_dir(self) -> Path:
        return self.output_root / PASSED_DIRNAME

    @property
    def failed_dir(self) -> Path:
        return self.output_root / FAILED_DIRNAME

    @property
    def summary_path(self) -> Path:
        return self.output_root / SUMMARY_RELPATH

    def destination(self, outcome: JobOutcome) -> Path:
        if outcome.passed:
            return self.passed_dir / outcome.job_id
        return self.failed_dir / outcome.status / outcome.job_id

    def prepare(self) -> None:
        """Clear the buckets and summary of any earlier run into the same root."""
        for stale in (self.passed_dir, self.failed_dir):
            if stale.is_dir():
                shutil.rmtree(stale)
        self.summary_path.unlink(missing_ok=True)

    def place(self, outcome: JobOutcome) -> Path:
        destination = self.destination(outcome)
        destination.mkdir(parents=True, exist_ok=True)

        kept: list[str] = []
        for path in outcome.files:
            if not path.exists() or path.name in _RESERVED_FILENAMES:
                continue
            shutil.move(str(path), destination / path.name)
            kept.append(path.name)

        (destination / LOG_FILENAME).write_text(outcome.log, encoding="utf-8")
        metadata = _outcome_metadata(outcome, files=kept)
        with (destination / METADATA_FILENAME).open("w", encoding="utf-8") as handle:
            json.dump(metadata, handle, indent=2, sort_keys=True)

        self._discard_work_dir(outcome.job)
        return destination

    def write_summary(self, summary: RunSummary) -> Path:
        path = self.summary_path
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "status": summary.status,
            "aborted": summary.aborted,
            "total": summary.total,
            "counts": summary.counts(),
            "build_duration_s": summary.build_duration_s,
            "simulate_duration_s": summary.simulate_duration_s,
            "jobs": [
                {
                    "index": outcome.job.index,
                    "job_id": outcome.job_id,
                    "status": outcome.status,
                    "path": str(self.destination(outcome).relative_to(self.output_root)),
                }
                for outcome in summary.outcomes
            ],
        }
        with path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
        return path

    def _discard_work_dir(self, job: ExampleJob) -> None:
        work_dir = job_work_dir(job, output_root=self.output_root)
        if not work_dir.exists():
            return
        try:
            shutil.rmtree(work_dir)
        except OSError:
            logging.getLogger("example_harness.results").warning(
                "Failed to remove working directory %s",
                work_dir,
                exc_info=True,
            )


def load_summary(output_root: Path) -> RunSummary:
    """Rebuild a RunSummary from the results tree alone."""
    store = ResultStore(output_root)
    metadata_paths = sorted(store.passed_dir.glob(f"*/{METADATA_FILENAME}"))
    metadata_paths += sorted(store.failed_dir.glob(f"*/*/{METADATA_FILENAME}"))

    outcomes = [_outcome_from_disk(path) for path in metadata_paths]

    aborted = any(outcome.skipped for outcome in outcomes)
    if store.summary_path.exists():
        payload = json.loads(store.summary_path.read_text(encoding="utf-8"))
        aborted = bool(payload.get("aborted", aborted))

    return RunSummary.from_outcomes(outcomes, aborted=aborted)


def _outcome_metadata(outcome: JobOutcome, *, files: list[str]) -> dict[str, Any]:
    return {
        "job_id": outcome.job_id,
        "index": outcome.job.index,
        "project": outcome.job.project,
        "example": outcome.job.example_name,
        "variant": outcome.job.variant,
        "stage": outcome.stage,
        "status": outcome.status,
        "duration_s": outcome.duration_s,
        "build_duration_s": outcome.build_duration_s,
        "simulate_duration_s": outcome.simulate_duration_s,
        "started_at_utc": outcome.started_at_utc,
        "ended_at_utc": outcome.ended_at_utc,
        "files": sorted(files),
    }


def _outcome_from_disk(metadata_path: Path) -> JobOutcome:
    job_dir = metadata_path.parent
    metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
    log_path = job_dir / LOG_FILENAME
    job = ExampleJob(
        index=int(metadata["index"]),
        project=metadata["project"],
        variant=metadata["variant"],
    )
    return JobOutcome(
        job=job,
        stage=metadata["stage"],
        status=metadata["status"],
        log=log_path.read_text(encoding="utf-8") if log_path.exists() else "",
        duration_s=float(metadata.get("duration_s", 0.0)),
        build_duration_s=float(metadata.get("build_duration_s", 0.0)),
        simulate_duration_s=float(metadata.get("simulate_duration_s", 0.0)),
        started_at_utc=metadata.get("started_at_utc"),
        ended_at_utc=metadata.get("ended_at_utc"),
        files=tuple(job_dir / name for name in metadata.get("files", [])),
    )
