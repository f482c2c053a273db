from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from simulators._common import validate_model_options


class WokwiOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    executable: str = "wokwi-cli"
    # Scenario files live at <scenarios_dir>/<variant>/<example>.yaml
    scenarios_dir: str = "scenarios"
    timeout_ms: int = Field(default=5000, gt=0)
    extra_args: list[str] = Field(default_factory=list)


def default_options() -> dict[str, Any]:
    return WokwiOptions().model_dump(mode="python")


def validate_options(options: Mapping[str, Any] | None, *, strict: bool = True) -> dict[str, Any]:
    return validate_model_options(WokwiOptions, options, strict=strict)


def parse_options(options: Mapping[str, Any] | None) -> WokwiOptions:
    raw = dict(options or {})
    return WokwiOptions.model_validate(
        {key: value for key, value in raw.items() if key in WokwiOptions.model_fields}
    )
