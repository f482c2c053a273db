from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Protocol, runtime_checkable

RunStatus = Literal["ok", "failed", "skipped"]


@runtime_checkable
class TrackingClient(Protocol):
    """
    Where a harness run publishes its outcome, when tracking is enabled.

    The run API drives one run per harness invocation: start, params, summary metrics and
    tags, the rendered report, the results tree, end. Every call is best-effort from the
    caller's side, so implementations may raise freely.
    """

    @property
    def active_run_id(self) -> str | None: ...

    def start_run(self, *, run_name: str, tags: Mapping[str, str]) -> str:
        """Open the run and return its id; raises if one is already open."""
        ...

    def end_run(self, *, status: RunStatus) -> None: ...

    def log_params(self, params: Mapping[str, Any]) -> None: ...

    def log_metric(self, key: str, value: float, *, step: int | None = None) -> None: ...

    def log_metrics(self, metrics: Mapping[str, float], *, step: int | None = None) -> None:
        """Per-status job counts and total build/simulate seconds."""
        ...

    def set_tags(self, tags: Mapping[str, str]) -> None: ...

    def log_text(self, text: str, *, artifact_file: str) -> None:
        """Store a text blob, such as the plain-text run report, as a run artifact."""
        ...

    def log_artifacts(self, local_dir: str, *, artifact_path: str | None = None) -> None:
        """Upload a directory tree, normally the whole results root."""
        ...

    def get_artifact_uri(self) -> str | None: ...
