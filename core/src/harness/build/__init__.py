from __future__ import annotations

from pathlib import Path

from harness.contracts import Builder, HarnessConfig

from .cargo import DEFAULT_TARGET, CargoBuilder, PrebuiltArtifactBuilder, artifact_path


def builder_from_config(config: HarnessConfig) -> Builder:
    project_path = Path(config.project.path)
    if config.execution.skip_build:
        return PrebuiltArtifactBuilder(project_path, target=config.project.target)
    return CargoBuilder(project_path, target=config.project.target)


__all__ = [
    "CargoBuilder",
    "DEFAULT_TARGET",
    "PrebuiltArtifactBuilder",
    "artifact_path",
    "builder_from_config",
]
