from __future__ import annotations

import logging
import os
import time
import traceback
from collections import deque
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from pathlib import Path

from harness.contracts.outcome import JobOutcome, JobStatus, Stage
from harness.contracts.plan import ExampleJob
from harness.contracts.toolchain import StepResult, ToolchainGateway
from harness.orchestration.control import TerminationSignal
from harness.runtime.artifacts import build_job_work_dir

OutcomeSink = Callable[[JobOutcome], None]


def effective_parallelism(parallelism: int) -> int:
    """0 means one worker per available processor."""
    if parallelism < 0:
        raise ValueError(f"parallelism must be >= 0, got {parallelism}")
    if parallelism > 0:
        return parallelism
    return max(1, os.cpu_count() or 1)


class WorkerPool:
    """
    Runs jobs through build then simulate on a bounded set of worker threads.

    Dispatch happens in plan order from the calling thread, which also harvests every
    finished job and hands its outcome to the sink. Workers share nothing with each other
    except the termination signal, which they only read.
    """

    def __init__(
        self,
        gateway: ToolchainGateway,
        *,
        output_root: Path,
        signal: TerminationSignal,
    ) -> None:
        self._gateway = gateway
        self._output_root = output_root
        self._signal = signal

    def run(
        self,
        plan: Iterable[ExampleJob],
        parallelism: int = 0,
        *,
        on_outcome: OutcomeSink | None = None,
    ) -> list[JobOutcome]:
        """Return one outcome per job, in completion order."""
        logger = logging.getLogger("example_harness.pool")
        workers = effective_parallelism(parallelism)
        pending: deque[ExampleJob] = deque(plan)
        in_flight: dict[Future[JobOutcome], ExampleJob] = {}
        outcomes: list[JobOutcome] = []

        def deliver(outcome: JobOutcome) -> None:
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        logger.info("Running %d job(s) on %d worker(s)", len(pending), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="example-worker") as pool:
            while pending or in_flight:
                while pending and len(in_flight) < workers and not self._signal.is_set():
                    job = pending.popleft()
                    try:
                        work_dir = build_job_work_dir(job, output_root=self._output_root)
                    except OSError as exc:
                        deliver(_infra_outcome(job, f"Cannot create working directory: {exc}\n"))
                        continue
                    logger.info("Dispatching %s", job.short_name())
                    in_flight[pool.submit(self._execute, job, work_dir)] = job

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda item: in_flight[item].index):
                    job = in_flight.pop(future)
                    deliver(_harvest(job, future))

        if pending:
            logger.warning(
                "Skipping %d job(s) not yet dispatched (%s)", len(pending), self._signal.reason
            )
        for job in pending:
            deliver(JobOutcome.skipped_for(job))
        return outcomes

    def _execute(self, job: ExampleJob, work_dir: Path) -> JobOutcome:
        if self._signal.is_set():
            return JobOutcome.skipped_for(job)

        started_at = datetime.now(UTC)
        start = time.perf_counter()

        build = self._gateway.build(job, work_dir=work_dir)
        if not build.ok or build.artifact is None:
            status: JobStatus = "infra-error" if build.status == "infra-error" else "build-failed"
            return _outcome(job, "build", status, started_at, start, build=build)

        simulate = self._gateway.simulate(build.artifact)
        if simulate.ok:
            status = "passed"
        elif simulate.status == "infra-error":
            status = "infra-error"
        else:
            status = "simulate-failed"
        return _outcome(job, "simulate", status, started_at, start, build=build, simulate=simulate)


def _outcome(
    job: ExampleJob,
    stage: Stage,
    status: JobStatus,
    started_at: datetime,
    start: float,
    *,
    build: StepResult,
    simulate: StepResult | None = None,
) -> JobOutcome:
    sections = [f"==> build ({build.status})\n{build.log}"]
    files = list(build.files)
    if simulate is not None:
        sections.append(f"==> simulate ({simulate.status})\n{simulate.log}")
        files.extend(simulate.files)

    outcome = JobOutcome(
        job=job,
        stage=stage,
        status=status,
        log="\n".join(sections),
        duration_s=time.perf_counter() - start,
        build_duration_s=build.duration_s,
        simulate_duration_s=simulate.duration_s if simulate is not None else 0.0,
        started_at_utc=started_at.isoformat(),
        ended_at_utc=datetime.now(UTC).isoformat(),
        files=tuple(files),
    )
    logging.getLogger("example_harness.pool").info(
        "%s %s after %.1fs", job.short_name(), status, outcome.duration_s
    )
    return outcome


def _harvest(job: ExampleJob, future: Future[JobOutcome]) -> JobOutcome:
    try:
        return future.result()
    except Exception as exc:
        logging.getLogger("example_harness.pool").error(
            "Worker for %s crashed", job.short_name(), exc_info=True
        )
        return _infra_outcome(
            job,
            f"Worker raised {type(exc).__name__}: {exc}\n"
            + "".join(traceback.format_exception(exc)),
        )


def _infra_outcome(job: ExampleJob, log: str) -> JobOutcome:
    now = datetime.now(UTC).isoformat()
    return JobOutcome(
        job=job,
        stage="build",
        status="infra-error",
        log=log,
        started_at_utc=now,
        ended_at_utc=now,
    )
