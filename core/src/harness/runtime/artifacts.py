from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from harness.contracts.plan import ExampleJob

_ENV_OUTPUT_ROOT = "HARNESS_OUTPUT_ROOT"
_LOCAL_OUTPUT_DIRNAME = ".results"
_TEMP_OUTPUT_DIRNAME = "example-harness-results"

WORK_DIRNAME = "tmp"


class OutputRootError(RuntimeError):
    """No writable results root could be found or created."""


def resolve_output_root(directory: str | Path | None = None) -> Path:
    """Resolve a writable results root directory and ensure it exists."""
    candidates: list[Path] = []

    if directory is not None:
        explicit = Path(directory).expanduser()
        if _ensure_writable_dir(explicit):
            return explicit.resolve()
        raise OutputRootError(f"Output directory is not writable: {explicit}")

    env_value = os.environ.get(_ENV_OUTPUT_ROOT)
    if env_value:
        candidates.append(Path(env_value).expanduser())

    candidates.append(Path.cwd() / _LOCAL_OUTPUT_DIRNAME)
    candidates.append(Path(tempfile.gettempdir()) / _TEMP_OUTPUT_DIRNAME)

    for candidate in candidates:
        if _ensure_writable_dir(candidate):
            return candidate

    raise OutputRootError("Unable to resolve a writable output root directory.")


def job_work_dir(job: ExampleJob, *, output_root: Path) -> Path:
    return output_root / WORK_DIRNAME / job.job_id


def build_job_work_dir(job: ExampleJob, *, output_root: Path) -> Path:
    """Create a fresh working directory owned by a single job."""
    work_dir = job_work_dir(job, output_root=output_root)
    if work_dir.exists():
        shutil.rmtree(work_dir)
    work_dir.mkdir(parents=True)
    return work_dir


def _ensure_writable_dir(path: Path) -> bool:
    """Create `path` if needed and prove a file can be written in it."""
    probe = path / ".harness-write-probe"
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe.write_text("", encoding="utf-8")
        probe.unlink()
    except OSError:
        return False
    return True
