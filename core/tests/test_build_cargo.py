from __future__ import annotations

import sys
from pathlib import Path

from harness.build import CargoBuilder, PrebuiltArtifactBuilder, artifact_path, builder_from_config
from harness.configuration import load_harness_config_dict
from harness.contracts import ExampleJob

_FAKE_CARGO = """\
import pathlib
import sys

args = sys.argv[1:]
name = args[args.index("--example") + 1]
mode = "release" if "--release" in args else "debug"
print("Compiling", name, mode)
if name == "broken":
    print("error[E0425]: cannot find value", file=sys.stderr)
    sys.exit(101)
if name != "vanishing":
    out = pathlib.Path("target/riscv32imac-unknown-none-elf") / mode / "examples" / name
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(b"ELF")
"""


def _job(name: str, variant: str = "debug") -> ExampleJob:
    return ExampleJob(index=0, project=f"examples/{name}.rs", variant=variant)  # type: ignore


def _fake_cargo(tmp_path: Path) -> str:
    script = tmp_path / "fake-cargo"
    script.write_text(f"#!{sys.executable}\n{_FAKE_CARGO}", encoding="utf-8")
    script.chmod(0o755)
    return str(script)


def _work_dir(tmp_path: Path) -> Path:
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    return work_dir


def test_command_per_variant(tmp_path):
    builder = CargoBuilder(tmp_path, extra_args=["--features", "log"])

    assert builder.command(_job("blink")) == [
        "cargo",
        "build",
        "--example",
        "blink",
        "--features",
        "log",
    ]
    assert builder.command(_job("blink", "release"))[:5] == [
        "cargo",
        "build",
        "--example",
        "blink",
        "--release",
    ]


def test_artifact_path_follows_cargo_layout(tmp_path):
    path = artifact_path(tmp_path, _job("blink", "release"))

    target_dir = tmp_path / "target" / "riscv32imac-unknown-none-elf"
    assert path == target_dir / "release" / "examples" / "blink"


def test_successful_build_returns_artifact(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    builder = CargoBuilder(project, cargo=_fake_cargo(tmp_path))
    work_dir = _work_dir(tmp_path)

    result = builder.build(_job("blink", "release"), work_dir=work_dir)

    assert result.status == "ok"
    assert result.artifact is not None
    assert result.artifact.path == artifact_path(project, _job("blink", "release"))
    assert result.artifact.work_dir == work_dir
    assert result.files == (work_dir / "build.log",)
    assert "Compiling blink release" in result.log


def test_compiler_error_is_a_build_failure(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    builder = CargoBuilder(project, cargo=_fake_cargo(tmp_path))

    result = builder.build(_job("broken"), work_dir=_work_dir(tmp_path))

    assert result.status == "failed"
    assert result.artifact is None
    assert "error[E0425]" in result.log


def test_missing_elf_after_success_is_infra_error(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    builder = CargoBuilder(project, cargo=_fake_cargo(tmp_path))

    result = builder.build(_job("vanishing"), work_dir=_work_dir(tmp_path))

    assert result.status == "infra-error"
    assert "does not exist" in result.log


def test_prebuilt_builder_locates_existing_artifact(tmp_path):
    elf = artifact_path(tmp_path, _job("blink"))
    elf.parent.mkdir(parents=True)
    elf.write_bytes(b"ELF")
    builder = PrebuiltArtifactBuilder(tmp_path)

    found = builder.build(_job("blink"), work_dir=_work_dir(tmp_path))
    missing = builder.build(_job("uart"), work_dir=tmp_path)

    assert found.status == "ok"
    assert found.artifact is not None and found.artifact.path == elf
    assert missing.status == "infra-error"
    assert "no prebuilt artifact" in missing.log


def test_builder_from_config_honours_skip_build(tmp_path):
    config = load_harness_config_dict(
        {"project": {"path": str(tmp_path)}, "execution": {"skip_build": True}}
    )
    assert isinstance(builder_from_config(config), PrebuiltArtifactBuilder)

    config = load_harness_config_dict({"project": {"path": str(tmp_path)}})
    assert isinstance(builder_from_config(config), CargoBuilder)
