from __future__ import annotations

import logging
import shlex
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path


class ToolLaunchError(RuntimeError):
    """The external tool could not be started at all."""


@dataclass(frozen=True, slots=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    output: str
    duration_s: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def command_line(self) -> str:
        return shlex.join(self.args)


def run_command(
    args: Sequence[str],
    *,
    cwd: Path,
    log_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """
    Run one external tool to completion and capture stdout+stderr.

    Blocks without a time limit. A non-zero exit is returned, never raised; only a failure to
    launch the process raises ToolLaunchError.
    """
    argv = tuple(str(arg) for arg in args)
    logging.getLogger("example_harness.process").debug(
        "Running %s (cwd=%s)", shlex.join(argv), cwd
    )
    start = time.perf_counter()
    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            check=False,
        )
    except (OSError, ValueError) as exc:
        raise ToolLaunchError(f"Failed to launch {argv[0] if argv else '<empty>'}: {exc}") from exc
    duration_s = time.perf_counter() - start

    output = completed.stdout or ""
    result = CommandResult(
        args=argv,
        returncode=completed.returncode,
        output=output,
        duration_s=duration_s,
    )
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("w", encoding="utf-8") as handle:
            handle.write(f"$ {result.command_line()}\n")
            handle.write(output)
            handle.write(f"\n[exit code {result.returncode}]\n")
    return result
