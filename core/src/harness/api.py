from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from harness.build import builder_from_config
from harness.configuration import (
    ConfigError,
    coerce_mapping,
    deep_merge,
    dump_yaml,
    load_harness_config,
    stable_hash,
)
from harness.contracts import (
    ExamplePlan,
    HarnessConfig,
    JobOutcome,
    RunStatus,
    RunSummary,
    Simulator,
    SimulatorInfo,
    SimulatorNotFoundError,
    SimulatorRegistry,
    ToolchainGateway,
    TrackingClient,
)
from harness.discovery import discover_examples
from harness.orchestration import (
    CommandToolchainGateway,
    ResultCollector,
    RunController,
    WorkerPool,
    effective_parallelism,
)
from harness.report import render_report
from harness.runtime.artifacts import resolve_output_root
from harness.runtime.results import ResultStore

RESOLVED_CONFIG_RELPATH = Path("summary") / "run_config.yaml"


def run_plan(
    plan: ExamplePlan,
    gateway: ToolchainGateway,
    *,
    output_root: str | Path | None = None,
    parallelism: int = 0,
    continue_on_error: bool = False,
    tracking: TrackingClient | None = None,
    run_name: str = "examples",
    tags: Mapping[str, str] | None = None,
) -> RunSummary:
    """Build and simulate every job of a plan and return the run's summary."""
    root = resolve_output_root(output_root)
    store = ResultStore(root)
    store.prepare()

    controller = RunController(continue_on_error=continue_on_error)
    collector = ResultCollector(total=len(plan), store=store)
    pool = WorkerPool(gateway, output_root=root, signal=controller.signal)

    def on_outcome(outcome: JobOutcome) -> None:
        collector.record(outcome)
        controller.observe(outcome)

    run_tags = dict(tags or {})
    run_tags["plan_hash"] = stable_hash([job.job_id for job in plan])
    tracker = _start_tracking_best_effort(tracking, run_name=run_name, tags=run_tags)
    params = {
        "plan_size": len(plan),
        "parallelism": effective_parallelism(parallelism),
        "continue_on_error": continue_on_error,
        "output_root": str(root),
    }
    _track_best_effort(tracker, "log_params", params)

    started = datetime.now(UTC)
    try:
        pool.run(plan, parallelism, on_outcome=on_outcome)
    except Exception:
        _end_tracking_best_effort(tracker, status="failed")
        raise
    controller.finish()

    summary = collector.finalize(aborted=controller.aborted)
    ended = datetime.now(UTC)
    logging.getLogger("example_harness.run").info(
        "Run finished in %.1fs: %d passed, %d failed, %d skipped",
        (ended - started).total_seconds(),
        summary.passed,
        summary.failed,
        summary.skipped,
    )

    _write_run_summary_best_effort(store, summary)
    if tracker is not None:
        _publish_summary_best_effort(tracker, summary, output_root=root)
        _end_tracking_best_effort(
            tracker, status="ok" if controller.overall_status(summary) == "passed" else "failed"
        )
    return summary


def run_from_config(
    config: HarnessConfig,
    *,
    registry: SimulatorRegistry,
    tracking: TrackingClient | None = None,
) -> RunSummary:
    # Tools run with cwd=project, so every path derived from it must be absolute.
    project_path = Path(config.project.path).expanduser().absolute()
    config = config.model_copy(
        update={"project": config.project.model_copy(update={"path": str(project_path)})}
    )
    simulator = build_simulator(config, registry=registry)
    parallelism = _parallelism_for_service(config, registry.get(config.simulator.service).info)
    gateway = CommandToolchainGateway(builder_from_config(config), simulator)
    plan = discover_examples(
        project_path,
        examples_dir=config.project.examples_dir,
        variants=config.project.variants,
    )
    logging.getLogger("example_harness.run").info(
        "Discovered %d job(s) under %s", len(plan), project_path / config.project.examples_dir
    )
    root = resolve_output_root(config.output.directory)
    _write_resolved_config_best_effort(root, config)

    tags = dict(config.tracking.tags)
    tags["service"] = config.simulator.service
    tags["project"] = project_path.name
    return run_plan(
        plan,
        gateway,
        output_root=root,
        parallelism=parallelism,
        continue_on_error=config.execution.continue_on_error,
        tracking=tracking,
        run_name=config.tracking.run_name or f"{project_path.name}:{config.simulator.service}",
        tags=tags,
    )


def run_from_yaml(
    config_yaml: str | Path | None,
    *,
    registry: SimulatorRegistry,
    tracking: TrackingClient | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RunSummary:
    config = load_harness_config(config_yaml, overrides=overrides)
    return run_from_config(config, registry=registry, tracking=tracking)


def build_simulator(config: HarnessConfig, *, registry: SimulatorRegistry) -> Simulator:
    try:
        plugin = registry.get(config.simulator.service)
    except SimulatorNotFoundError as exc:
        known = sorted(info.key for info in registry.list())
        raise ConfigError(
            f"Unknown simulator service '{config.simulator.service}' (known: {known})"
        ) from exc

    defaults = coerce_mapping(plugin.default_options())
    merged = deep_merge(defaults, config.simulator.options)
    try:
        options = coerce_mapping(plugin.validate_options(merged, strict=config.simulator.strict))
    except ValueError as exc:
        raise ConfigError(f"simulator.options ({plugin.info.key}): {exc}") from exc
    return plugin.create(Path(config.project.path), options)


def _parallelism_for_service(config: HarnessConfig, info: SimulatorInfo) -> int:
    requested = config.execution.parallelism
    cap = info.max_parallelism
    if cap is None or effective_parallelism(requested) <= cap:
        return requested
    logging.getLogger("example_harness.run").warning(
        "Simulator '%s' allows at most %d concurrent job(s); parallelism %d lowered to %d",
        info.key,
        cap,
        requested,
        cap,
    )
    return cap


def _start_tracking_best_effort(
    tracking: TrackingClient | None,
    *,
    run_name: str,
    tags: Mapping[str, str],
) -> TrackingClient | None:
    if tracking is None:
        return None
    try:
        tracking.start_run(run_name=run_name, tags=tags)
    except Exception:
        logging.getLogger("example_harness.tracking").warning(
            "Tracking start failed for %s; continuing untracked",
            run_name,
            exc_info=True,
        )
        return None
    return tracking


def _track_best_effort(tracking: TrackingClient | None, method: str, *args: Any) -> None:
    if tracking is None:
        return
    try:
        getattr(tracking, method)(*args)
    except Exception:
        logging.getLogger("example_harness.tracking").warning(
            "Tracking call %s failed", method, exc_info=True
        )


def _publish_summary_best_effort(
    tracking: TrackingClient,
    summary: RunSummary,
    *,
    output_root: Path,
) -> None:
    metrics: dict[str, float] = {
        f"jobs_{status.replace('-', '_')}": float(count)
        for status, count in summary.counts().items()
    }
    metrics["jobs_total"] = float(summary.total)
    metrics["build_duration_s"] = summary.build_duration_s
    metrics["simulate_duration_s"] = summary.simulate_duration_s
    _track_best_effort(tracking, "log_metrics", metrics)
    _track_best_effort(tracking, "set_tags", {"aborted": str(summary.aborted).lower()})
    try:
        tracking.log_text(render_report(summary), artifact_file="report.txt")
        tracking.log_artifacts(str(output_root), artifact_path="results")
    except Exception:
        logging.getLogger("example_harness.tracking").warning(
            "Failed to upload results from %s",
            output_root,
            exc_info=True,
        )


def _end_tracking_best_effort(tracking: TrackingClient | None, *, status: RunStatus) -> None:
    if tracking is None:
        return
    try:
        tracking.end_run(status=status)
    except Exception:
        logging.getLogger("example_harness.tracking").warning(
            "Tracking end failed", exc_info=True
        )


def _write_run_summary_best_effort(store: ResultStore, summary: RunSummary) -> None:
    try:
        store.write_summary(summary)
    except Exception:
        logging.getLogger("example_harness.results").warning(
            "Failed to write run summary under %s",
            store.output_root,
            exc_info=True,
        )


def _write_resolved_config_best_effort(output_root: Path, config: HarnessConfig) -> None:
    try:
        dump_yaml(output_root / RESOLVED_CONFIG_RELPATH, config.model_dump(mode="json"))
    except Exception:
        logging.getLogger("example_harness.results").warning(
            "Failed to write resolved config under %s",
            output_root,
            exc_info=True,
        )
