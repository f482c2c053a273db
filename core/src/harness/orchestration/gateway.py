from __future__ import annotations

import logging
import time
import traceback
from collections.abc import Callable
from pathlib import Path

from harness.contracts.plan import VARIANTS, ExampleJob
from harness.contracts.toolchain import BuildArtifact, Builder, Simulator, StepResult
from harness.runtime.process import ToolLaunchError


class CommandToolchainGateway:
    """
    Couples a builder and a simulator behind the exception-free gateway contract.

    Anything that escapes the underlying tools becomes an infra-error result.
    """

    def __init__(self, builder: Builder, simulator: Simulator) -> None:
        self._builder = builder
        self._simulator = simulator

    def build(self, job: ExampleJob, *, work_dir: Path) -> StepResult:
        if job.variant not in VARIANTS:
            return StepResult(
                status="infra-error",
                log=f"Malformed job {job.job_id}: unknown variant {job.variant!r}\n",
            )

        result = _guarded("build", job, lambda: self._builder.build(job, work_dir=work_dir))
        if result.ok and result.artifact is None:
            return StepResult(
                status="infra-error",
                log=result.log + "Builder reported success without an artifact\n",
                duration_s=result.duration_s,
                files=result.files,
            )
        return result

    def simulate(self, artifact: BuildArtifact) -> StepResult:
        return _guarded("simulate", artifact.job, lambda: self._simulator.simulate(artifact))


def _guarded(stage: str, job: ExampleJob, call: Callable[[], StepResult]) -> StepResult:
    logger = logging.getLogger("example_harness.gateway")
    start = time.perf_counter()
    try:
        return call()
    except ToolLaunchError as exc:
        logger.warning("%s %s could not start: %s", job.short_name(), stage, exc)
        return StepResult(
            status="infra-error",
            log=f"{exc}\n",
            duration_s=time.perf_counter() - start,
        )
    except Exception as exc:
        logger.warning("%s %s raised %s", job.short_name(), stage, exc, exc_info=True)
        return StepResult(
            status="infra-error",
            log=f"{stage} raised {type(exc).__name__}: {exc}\n{traceback.format_exc()}",
            duration_s=time.perf_counter() - start,
        )
