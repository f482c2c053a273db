from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from harness.contracts.toolchain import SimulatorInfo, SimulatorPlugin


class SimulatorNotFoundError(KeyError):
    pass


@runtime_checkable
class SimulatorRegistry(Protocol):
    def get(self, service: str) -> SimulatorPlugin:
        """Return plugin for a service key or raise SimulatorNotFoundError."""
        ...

    def list(self) -> Iterable[SimulatorInfo]:
        """List available services (for --help / debugging)."""
        ...
