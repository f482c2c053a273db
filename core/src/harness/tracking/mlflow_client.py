from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from harness.contracts.tracking import RunStatus

try:
    import mlflow as _mlflow
except Exception:  # pragma: no cover - handled via runtime error
    _mlflow = None

_MLFLOW_RUN_STATUS: dict[str, str] = {
    "ok": "FINISHED",
    "failed": "FAILED",
    "skipped": "KILLED",
}


class MlflowTrackingClient:
    """
    TrackingClient backed by the mlflow fluent API.

    A whole harness run is a single mlflow run. Jobs are not runs of their own; their
    outcomes reach mlflow as the uploaded results tree and the counts in the run metrics.
    """

    def __init__(
        self,
        *,
        tracking_uri: str | None = None,
        experiment_name: str | None = None,
        experiment_id: str | None = None,
    ) -> None:
        """Create a tracking client with optional MLflow configuration."""
        if experiment_name and experiment_id:
            raise ValueError("Provide either experiment_name or experiment_id, not both.")
        if _mlflow is None:
            raise RuntimeError(
                "mlflow is not installed. Install the 'tracking' extra or disable tracking."
            )

        self._mlflow = _mlflow
        self._experiment_id = experiment_id
        self._run_id: str | None = None

        if tracking_uri:
            self._mlflow.set_tracking_uri(tracking_uri)
        if experiment_name:
            self._mlflow.set_experiment(experiment_name)

    @classmethod
    def from_env(
        cls,
        *,
        tracking_uri: str | None = None,
        experiment_name: str | None = None,
    ) -> MlflowTrackingClient:
        """Fill unset arguments from MLFLOW_TRACKING_URI and MLFLOW_EXPERIMENT."""
        return cls(
            tracking_uri=tracking_uri or os.environ.get("MLFLOW_TRACKING_URI"),
            experiment_name=experiment_name or os.environ.get("MLFLOW_EXPERIMENT"),
        )

    @property
    def active_run_id(self) -> str | None:
        """Return the active run id, if any."""
        return self._run_id

    def start_run(self, *, run_name: str, tags: Mapping[str, str]) -> str:
        """Start a new MLflow run and return its id."""
        if self._run_id is not None or self._mlflow.active_run() is not None:
            raise RuntimeError("An MLflow run is already active.")
        run = self._mlflow.start_run(
            run_name=run_name,
            tags=dict(tags),
            experiment_id=self._experiment_id,
        )
        self._run_id = run.info.run_id
        return self._run_id

    def end_run(self, *, status: RunStatus) -> None:
        """End the active MLflow run."""
        self._active().end_run(status=_MLFLOW_RUN_STATUS[status])
        self._run_id = None

    def log_params(self, params: Mapping[str, Any]) -> None:
        """Log multiple parameters."""
        self._active().log_params(dict(params))

    def log_metric(self, key: str, value: float, *, step: int | None = None) -> None:
        """Log a single metric."""
        self._active().log_metric(key, value, step=step)

    def log_metrics(self, metrics: Mapping[str, float], *, step: int | None = None) -> None:
        """Log multiple metrics."""
        self._active().log_metrics(dict(metrics), step=step)

    def set_tags(self, tags: Mapping[str, str]) -> None:
        """Set tags on the active run."""
        self._active().set_tags(dict(tags))

    def log_text(self, text: str, *, artifact_file: str) -> None:
        """Store a text blob as an artifact file of the active run."""
        self._active().log_text(text, artifact_file)

    def log_artifacts(self, local_dir: str, *, artifact_path: str | None = None) -> None:
        """Log all artifacts within a directory."""
        self._active().log_artifacts(local_dir, artifact_path=artifact_path)

    def get_artifact_uri(self) -> str | None:
        """Return the active run's artifact URI, if any."""
        return self._mlflow.get_artifact_uri() if self._run_id is not None else None

    def _active(self) -> Any:
        if self._run_id is None:
            raise RuntimeError("No active MLflow run. Call start_run first.")
        return self._mlflow
