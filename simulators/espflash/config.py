from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from simulators._common import validate_model_options


class EspflashOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    executable: str = "espflash"
    port: str = Field(default="/dev/ttyUSB0", min_length=1)
    monitor: bool = True
    extra_args: list[str] = Field(default_factory=list)


def default_options() -> dict[str, Any]:
    return EspflashOptions().model_dump(mode="python")


def validate_options(options: Mapping[str, Any] | None, *, strict: bool = True) -> dict[str, Any]:
    return validate_model_options(EspflashOptions, options, strict=strict)


def parse_options(options: Mapping[str, Any] | None) -> EspflashOptions:
    raw = dict(options or {})
    return EspflashOptions.model_validate(
        {key: value for key, value in raw.items() if key in EspflashOptions.model_fields}
    )
