from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from harness.contracts import (
    SimulatorInfo,
    SimulatorNotFoundError,
    SimulatorPlugin,
    SimulatorRegistry,
)


@dataclass
class DictSimulatorRegistry(SimulatorRegistry):
    plugins: dict[str, SimulatorPlugin]

    def get(self, service: str) -> SimulatorPlugin:
        try:
            return self.plugins[service]
        except KeyError as e:
            raise SimulatorNotFoundError(service) from e

    def list(self) -> Iterable[SimulatorInfo]:
        return [p.info for p in self.plugins.values()]
