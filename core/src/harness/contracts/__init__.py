from .harness_config import (
    ExecutionConfig,
    HarnessConfig,
    OutputConfig,
    ProjectConfig,
    SimulatorConfig,
    TrackingConfig,
)
from .outcome import JOB_STATUSES, JobOutcome, JobStatus, Stage
from .plan import VARIANTS, ExampleJob, ExamplePlan, PlanValidationError, Variant
from .registry import SimulatorNotFoundError, SimulatorRegistry
from .summary import OverallStatus, RunSummary
from .toolchain import (
    BuildArtifact,
    Builder,
    Simulator,
    SimulatorInfo,
    SimulatorPlugin,
    StepResult,
    StepStatus,
    ToolchainGateway,
)
from .tracking import RunStatus, TrackingClient

__all__ = [
    "ExampleJob",
    "ExamplePlan",
    "PlanValidationError",
    "Variant",
    "VARIANTS",
    "JobOutcome",
    "JobStatus",
    "JOB_STATUSES",
    "Stage",
    "RunSummary",
    "OverallStatus",
    "BuildArtifact",
    "Builder",
    "Simulator",
    "SimulatorInfo",
    "SimulatorPlugin",
    "StepResult",
    "StepStatus",
    "ToolchainGateway",
    "SimulatorRegistry",
    "SimulatorNotFoundError",
    "HarnessConfig",
    "ProjectConfig",
    "ExecutionConfig",
    "SimulatorConfig",
    "OutputConfig",
    "TrackingConfig",
    "TrackingClient",
    "RunStatus",
]
