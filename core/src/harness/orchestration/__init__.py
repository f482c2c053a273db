from .collector import DuplicateOutcomeError, IncompleteRunError, ResultCollector
from .control import RunController, RunState, TerminationSignal
from .gateway import CommandToolchainGateway
from .pool import WorkerPool, effective_parallelism
from .registry import DictSimulatorRegistry

__all__ = [
    "CommandToolchainGateway",
    "DictSimulatorRegistry",
    "DuplicateOutcomeError",
    "IncompleteRunError",
    "ResultCollector",
    "RunController",
    "RunState",
    "TerminationSignal",
    "WorkerPool",
    "effective_parallelism",
]
