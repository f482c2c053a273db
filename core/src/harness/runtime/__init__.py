"""Runtime helpers for orchestration."""

from harness.runtime.artifacts import OutputRootError, build_job_work_dir, resolve_output_root
from harness.runtime.process import CommandResult, ToolLaunchError, run_command
from harness.runtime.results import ResultStore, load_summary

__all__ = [
    "OutputRootError",
    "build_job_work_dir",
    "resolve_output_root",
    "CommandResult",
    "ToolLaunchError",
    "run_command",
    "ResultStore",
    "load_summary",
]
