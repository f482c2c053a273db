from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from harness.contracts.plan import Variant


class ProjectConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)
    examples_dir: str = "examples"
    variants: list[Variant] = Field(default_factory=lambda: ["debug", "release"])
    target: str = "riscv32imac-unknown-none-elf"

    @field_validator("variants")
    @classmethod
    def _validate_variants(cls, value: list[Variant]) -> list[Variant]:
        if not value:
            raise ValueError("variants must not be empty")
        if len(set(value)) != len(value):
            raise ValueError("variants must not repeat")
        return value


class ExecutionConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    parallelism: int = Field(default=0, ge=0)
    continue_on_error: bool = False
    skip_build: bool = False


class SimulatorConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    service: str = Field(default="wokwi", min_length=1)
    strict: bool = True
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options_dict(cls, value: Any) -> dict[str, Any]:
        if value is None:
            return {}
        if isinstance(value, dict):
            return value
        raise ValueError("options must be a mapping")


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # None: resolved from HARNESS_OUTPUT_ROOT, then ./.results, then the temp dir
    directory: str | None = None


class TrackingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    tracking_uri: str | None = None
    experiment: str | None = None
    run_name: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)


class HarnessConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project: ProjectConfig
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
