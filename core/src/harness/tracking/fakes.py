from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from harness.contracts.tracking import RunStatus


@dataclass(frozen=True, slots=True)
class TrackingCall:
    name: str
    kwargs: dict[str, Any]


@dataclass(slots=True)
class FakeRun:
    """Everything a tracked harness run published, kept in memory."""

    run_id: str
    run_name: str
    tags: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, float] = field(default_factory=dict)
    texts: dict[str, str] = field(default_factory=dict)
    artifact_dirs: list[tuple[str, str | None]] = field(default_factory=list)
    status: RunStatus | None = None


class FakeTrackingClient:
    """
    In-memory TrackingClient for tests.

    Enforces the same lifecycle as the mlflow client: one active run at a time and no
    logging outside a run. `runs` keeps finished runs for inspection.
    """

    def __init__(self, *, base_artifact_uri: str | None = None) -> None:
        self._base_artifact_uri = base_artifact_uri
        self._active: FakeRun | None = None
        self.runs: list[FakeRun] = []
        self.calls: list[TrackingCall] = []

    @property
    def active_run_id(self) -> str | None:
        """Return the active run id, if any."""
        return self._active.run_id if self._active is not None else None

    @property
    def last_run(self) -> FakeRun:
        """Return the most recently started run."""
        if not self.runs:
            raise LookupError("No run has been started")
        return self.runs[-1]

    def names(self) -> list[str]:
        """Return the recorded call names in order."""
        return [call.name for call in self.calls]

    def last(self, name: str) -> TrackingCall:
        """Return the most recent call with the given name."""
        matches = [call for call in self.calls if call.name == name]
        if not matches:
            raise LookupError(f"No {name} call recorded")
        return matches[-1]

    def start_run(self, *, run_name: str, tags: Mapping[str, str]) -> str:
        """Start a fake run and return its id."""
        if self._active is not None:
            raise RuntimeError("A run is already active.")
        run = FakeRun(run_id=f"run_{len(self.runs) + 1}", run_name=run_name, tags=dict(tags))
        self.runs.append(run)
        self._active = run
        self.calls.append(TrackingCall("start_run", {"run_name": run_name, "tags": dict(tags)}))
        return run.run_id

    def end_run(self, *, status: RunStatus) -> None:
        """End the active fake run."""
        self._run("end_run", status=status).status = status
        self._active = None

    def log_params(self, params: Mapping[str, Any]) -> None:
        """Log multiple parameters."""
        self._run("log_params", params=dict(params)).params.update(params)

    def log_metric(self, key: str, value: float, *, step: int | None = None) -> None:
        """Log a single metric."""
        self._run("log_metric", key=key, value=value, step=step).metrics[key] = value

    def log_metrics(self, metrics: Mapping[str, float], *, step: int | None = None) -> None:
        """Log multiple metrics."""
        self._run("log_metrics", metrics=dict(metrics), step=step).metrics.update(metrics)

    def set_tags(self, tags: Mapping[str, str]) -> None:
        """Set tags on the active run."""
        self._run("set_tags", tags=dict(tags)).tags.update(tags)

    def log_text(self, text: str, *, artifact_file: str) -> None:
        """Store a text blob as an artifact file of the active run."""
        self._run("log_text", text=text, artifact_file=artifact_file).texts[artifact_file] = text

    def log_artifacts(self, local_dir: str, *, artifact_path: str | None = None) -> None:
        """Log all artifacts within a directory."""
        run = self._run("log_artifacts", local_dir=local_dir, artifact_path=artifact_path)
        run.artifact_dirs.append((local_dir, artifact_path))

    def get_artifact_uri(self) -> str | None:
        """Return a fake artifact URI for the active run, if any."""
        if self._active is None or self._base_artifact_uri is None:
            return None
        return f"{self._base_artifact_uri}/{self._active.run_id}"

    def _run(self, name: str, **kwargs: Any) -> FakeRun:
        if self._active is None:
            raise RuntimeError("No active run. Call start_run first.")
        self.calls.append(TrackingCall(name, kwargs))
        return self._active
