from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from harness.api import run_from_config
from harness.configuration import ConfigError, load_harness_config, parse_overrides
from harness.contracts import HarnessConfig, PlanValidationError, RunSummary, TrackingClient
from harness.orchestration import DictSimulatorRegistry
from harness.report import render_report
from harness.runtime import OutputRootError
from harness.tracking import MlflowTrackingClient
from simulators import EspflashSimulatorPlugin, QemuSimulatorPlugin, WokwiSimulatorPlugin

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_registry() -> DictSimulatorRegistry:
    plugins = {
        "wokwi": WokwiSimulatorPlugin(),
        "qemu": QemuSimulatorPlugin(),
        "espflash": EspflashSimulatorPlugin(),
    }
    return DictSimulatorRegistry(plugins=plugins)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build and simulate every example of a firmware project."
    )
    parser.add_argument("--config", type=Path, default=None, help="Optional run YAML")
    parser.add_argument("-p", "--project-path", default=None, help="Path to the project")
    parser.add_argument(
        "-o", "--output-directory", default=None, help="Where passed/ and failed/ are written"
    )
    parser.add_argument(
        "-c",
        "--continue-on-error",
        action="store_true",
        default=None,
        help="Keep dispatching examples after a failure",
    )
    parser.add_argument(
        "-n", "--skip-build", action="store_true", default=None, help="Reuse existing builds"
    )
    parser.add_argument(
        "-j",
        "--parallelism",
        type=int,
        default=None,
        help="Concurrent examples (0 = one per CPU, the default)",
    )
    parser.add_argument("-s", "--service", default=None, help="Simulator service (default: wokwi)")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Dot-path config override, e.g. simulator.options.timeout_ms=10000",
    )
    parser.add_argument("--tracking-uri", default=None, help="Enable MLflow tracking at this URI")
    parser.add_argument("--experiment", default=None, help="MLflow experiment name")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    flag_paths = {
        "project_path": "project.path",
        "output_directory": "output.directory",
        "continue_on_error": "execution.continue_on_error",
        "skip_build": "execution.skip_build",
        "parallelism": "execution.parallelism",
        "service": "simulator.service",
        "tracking_uri": "tracking.tracking_uri",
        "experiment": "tracking.experiment",
    }
    for attr, path in flag_paths.items():
        value = getattr(args, attr)
        if value is not None:
            overrides[path] = value
    if args.tracking_uri is not None:
        overrides["tracking.enabled"] = True
    overrides.update(parse_overrides(args.overrides))
    return overrides


def build_tracking(config: HarnessConfig) -> TrackingClient | None:
    if not config.tracking.enabled:
        return None
    return MlflowTrackingClient.from_env(
        tracking_uri=config.tracking.tracking_uri,
        experiment_name=config.tracking.experiment,
    )


def exit_code_for(summary: RunSummary) -> int:
    return EXIT_PASSED if summary.status == "passed" else EXIT_FAILED


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_harness_config(args.config, overrides=overrides_from_args(args))
        summary = run_from_config(
            config,
            registry=build_registry(),
            tracking=build_tracking(config),
        )
    except (ConfigError, OutputRootError, PlanValidationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    print(render_report(summary), end="")
    return exit_code_for(summary)


if __name__ == "__main__":
    sys.exit(main())
