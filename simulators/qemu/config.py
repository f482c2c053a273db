from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from simulators._common import validate_model_options


class QemuOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    executable: str = "qemu-system-riscv32"
    machine: str = Field(default="virt", min_length=1)
    bios: str | None = "none"
    # Lets the firmware report pass/fail through the QEMU exit code
    semihosting: bool = True
    extra_args: list[str] = Field(default_factory=list)


def default_options() -> dict[str, Any]:
    return QemuOptions().model_dump(mode="python")


def validate_options(options: Mapping[str, Any] | None, *, strict: bool = True) -> dict[str, Any]:
    return validate_model_options(QemuOptions, options, strict=strict)


def parse_options(options: Mapping[str, Any] | None) -> QemuOptions:
    raw = dict(options or {})
    return QemuOptions.model_validate(
        {key: value for key, value in raw.items() if key in QemuOptions.model_fields}
    )
