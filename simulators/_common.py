from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from harness.contracts import BuildArtifact, StepResult
from harness.runtime.process import run_command

SIMULATE_LOG_FILENAME = "simulate.log"


def serial_log_path(artifact: BuildArtifact) -> Path:
    job = artifact.job
    return artifact.work_dir / f"{job.example_name}-{job.variant}.txt"


class CommandSimulator:
    """
    Runs one simulator process per artifact; exit code 0 means the example passed.

    Subclasses provide the command line and say whether the tool writes the serial log itself.
    """

    writes_serial_log = False

    def __init__(self, project_path: Path) -> None:
        self.project_path = project_path

    def command(self, artifact: BuildArtifact) -> list[str]:
        raise NotImplementedError

    def preflight(self, artifact: BuildArtifact) -> str | None:
        """Return an error message when the run cannot even be attempted."""
        return None

    def simulate(self, artifact: BuildArtifact) -> StepResult:
        problem = self.preflight(artifact)
        if problem is not None:
            return StepResult(status="infra-error", log=f"{problem}\n")

        log_path = artifact.work_dir / SIMULATE_LOG_FILENAME
        serial_log = serial_log_path(artifact)
        result = run_command(self.command(artifact), cwd=self.project_path, log_path=log_path)
        if not self.writes_serial_log:
            serial_log.write_text(result.output, encoding="utf-8")

        files = tuple(path for path in (log_path, serial_log) if path.exists())
        return StepResult(
            status="ok" if result.ok else "failed",
            log=result.output + f"\n[exit code {result.returncode}]\n",
            duration_s=result.duration_s,
            files=files,
        )


def validate_model_options(
    model_type: type[BaseModel],
    options: Mapping[str, Any] | None,
    *,
    strict: bool = True,
) -> dict[str, Any]:
    """Strict mode rejects unknown keys; otherwise they are kept untouched."""
    raw = dict(options or {})
    if strict:
        return model_type.model_validate(raw).model_dump(mode="python")

    known = {key: value for key, value in raw.items() if key in model_type.model_fields}
    validated = model_type.model_validate(known).model_dump(mode="python")
    return {**raw, **validated}
