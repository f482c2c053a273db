from __future__ import annotations

import hashlib
import json
import os
import re
from collections.abc import Iterable, Mapping
from copy import deepcopy
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from harness.contracts import HarnessConfig

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")

# Relative paths in these fields are anchored at the directory of the YAML file
_FILE_RELATIVE_FIELDS = (("project", "path"), ("output", "directory"))


class ConfigError(ValueError):
    pass


def load_yaml(path: str | Path) -> dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ConfigError(f"YAML root must be a mapping: {path}")
    return payload


def load_harness_config(
    path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> HarnessConfig:
    """
    Load a run config.

    The YAML file is optional; without it the overrides alone must describe the run
    (at least `project.path`). Environment references are expanded before overrides are
    applied, so override values are taken literally.
    """
    payload: dict[str, Any] = {}
    if path is not None:
        payload = expand_env(load_yaml(path))
        _anchor_relative_paths(payload, Path(path).parent)
    if overrides:
        payload = apply_dotpath_overrides(payload, overrides)
    return load_harness_config_dict(payload, expand=False)


def load_harness_config_dict(payload: Mapping[str, Any], *, expand: bool = True) -> HarnessConfig:
    data = expand_env(dict(payload)) if expand else dict(payload)
    try:
        return HarnessConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(_describe_validation_error(exc)) from exc


def expand_env(payload: Any, *, where: str = "$") -> Any:
    """Replace `${NAME}` / `${NAME:-fallback}` references in every string of a payload."""
    if isinstance(payload, Mapping):
        return {
            str(key): expand_env(value, where=f"{where}.{key}") for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [expand_env(item, where=f"{where}[{i}]") for i, item in enumerate(payload)]
    if not isinstance(payload, str):
        return payload

    def lookup(match: re.Match[str]) -> str:
        name, default = match.group("name"), match.group("default")
        value = os.environ.get(name, default)
        if value is None:
            raise ConfigError(f"Missing environment variable '{name}' at {where}")
        return value

    return _ENV_REF.sub(lookup, payload)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = deep_merge(current, value)
        merged[key] = deepcopy(value)
    return merged


def apply_dotpath_overrides(
    base: Mapping[str, Any],
    overrides: Mapping[str, Any],
) -> dict[str, Any]:
    result = deepcopy(dict(base))
    for dotted, value in overrides.items():
        *parents, leaf = _split_dotpath(dotted)
        node = result
        for depth, key in enumerate(parents):
            child = node.setdefault(key, {})
            if child is None:
                child = node[key] = {}
            if not isinstance(child, dict):
                prefix = ".".join(parents[: depth + 1])
                raise ConfigError(
                    f"Override '{dotted}' collides with non-mapping value at {prefix}"
                )
            node = child
        node[leaf] = value
    return result


def parse_override(text: str) -> tuple[str, Any]:
    """Parse a `--set key.path=value` argument; the value is read as YAML."""
    dotted, sep, raw = text.partition("=")
    dotted = dotted.strip()
    if not sep or not dotted:
        raise ConfigError(f"Override must look like 'key.path=value', got '{text}'")
    _split_dotpath(dotted)
    try:
        value = yaml.safe_load(raw) if raw else None
    except yaml.YAMLError as exc:
        raise ConfigError(f"Override value for '{dotted}' is not valid YAML: {exc}") from exc
    return dotted, value


def parse_overrides(texts: Iterable[str]) -> dict[str, Any]:
    return dict(parse_override(text) for text in texts)


def stable_hash(payload: Any, *, length: int = 12) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:length]


def coerce_mapping(payload: Any) -> dict[str, Any]:
    """Accept plugin option payloads given as mappings, dataclasses or pydantic models."""
    if payload is None:
        return {}
    if isinstance(payload, Mapping):
        return dict(payload)
    if is_dataclass(payload) and not isinstance(payload, type):
        return asdict(payload)
    dump = getattr(payload, "model_dump", None)
    if callable(dump):
        dumped = dump()
        if isinstance(dumped, Mapping):
            return dict(dumped)
    raise ConfigError(f"Expected mapping-like value, got {type(payload).__name__}")


def dump_yaml(path: str | Path, payload: Any) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return output


def _split_dotpath(dotted: str) -> list[str]:
    parts = dotted.split(".")
    if not all(parts):
        raise ConfigError(f"Invalid override path '{dotted}'")
    return parts


def _anchor_relative_paths(payload: dict[str, Any], base_dir: Path) -> None:
    for section, key in _FILE_RELATIVE_FIELDS:
        block = payload.get(section)
        if not isinstance(block, dict):
            continue
        value = block.get(key)
        if isinstance(value, str) and value and not Path(value).expanduser().is_absolute():
            block[key] = str(base_dir / value)


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors(include_url=False):
        location = ".".join(["config", *(str(part) for part in error["loc"])])
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)
