from __future__ import annotations

import sys
from pathlib import Path

from apps.run_examples import build_registry, main, overrides_from_args, parse_args
from harness.build import artifact_path
from harness.contracts import ExampleJob


def _firmware_project(root: Path) -> Path:
    project = root / "firmware"
    (project / "examples").mkdir(parents=True)
    (project / "examples" / "blink.rs").write_text("fn main() {}\n", encoding="utf-8")
    job = ExampleJob(index=0, project="examples/blink.rs", variant="debug")
    elf = artifact_path(project, job)
    elf.parent.mkdir(parents=True)
    elf.write_bytes(b"ELF")
    return project


def _fake_qemu(root: Path, *, exit_code: int) -> str:
    script = root / "fake-qemu"
    script.write_text(
        f"#!{sys.executable}\nimport sys\nprint('booted')\nsys.exit({exit_code})\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    return str(script)


def test_registry_offers_every_service():
    keys = sorted(info.key for info in build_registry().list())

    assert keys == ["espflash", "qemu", "wokwi"]


def test_only_given_flags_become_overrides():
    args = parse_args(["-p", "fw", "-j", "3", "--set", "simulator.options.timeout_ms=9000"])

    assert overrides_from_args(args) == {
        "project.path": "fw",
        "execution.parallelism": 3,
        "simulator.options.timeout_ms": 9000,
    }


def test_tracking_uri_enables_tracking():
    args = parse_args(["-p", "fw", "-c", "-n", "-s", "qemu", "--tracking-uri", "file:./mlruns"])

    overrides = overrides_from_args(args)

    assert overrides["execution.continue_on_error"] is True
    assert overrides["execution.skip_build"] is True
    assert overrides["simulator.service"] == "qemu"
    assert overrides["tracking.enabled"] is True
    assert overrides["tracking.tracking_uri"] == "file:./mlruns"


def _argv(project: Path, output: Path, tool: str) -> list[str]:
    return [
        "-p",
        str(project),
        "-o",
        str(output),
        "-n",
        "-j",
        "1",
        "-s",
        "qemu",
        "--set",
        "project.variants=[debug]",
        "--set",
        f"simulator.options.executable={tool}",
    ]


def test_main_exits_zero_when_every_example_passes(tmp_path, capsys):
    project = _firmware_project(tmp_path)
    tool = _fake_qemu(tmp_path, exit_code=0)

    code = main(_argv(project, tmp_path / "out", tool))

    assert code == 0
    assert "Overall: PASSED" in capsys.readouterr().out
    assert (tmp_path / "out" / "passed" / "blink-debug" / "blink-debug.txt").exists()


def test_main_exits_one_when_an_example_fails(tmp_path, capsys):
    project = _firmware_project(tmp_path)
    tool = _fake_qemu(tmp_path, exit_code=1)

    code = main(_argv(project, tmp_path / "out", tool))

    assert code == 1
    assert "Overall: FAILED" in capsys.readouterr().out
    assert (tmp_path / "out" / "failed" / "simulate-failed" / "blink-debug").is_dir()


def test_main_exits_two_on_bad_config(tmp_path, capsys):
    code = main(["-p", str(tmp_path), "-s", "renode"])

    assert code == 2
    assert "Unknown simulator service 'renode'" in capsys.readouterr().err


def test_main_accepts_a_project_path_relative_to_cwd(tmp_path, monkeypatch, capsys):
    _firmware_project(tmp_path)
    script = tmp_path / "kernel-check"
    script.write_text(
        f"#!{sys.executable}\n"
        "import os, sys\n"
        "kernel = sys.argv[sys.argv.index('-kernel') + 1]\n"
        "sys.exit(0 if os.path.isfile(kernel) else 3)\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    monkeypatch.chdir(tmp_path)

    code = main(_argv(Path("firmware"), Path("out"), str(script)))

    assert code == 0
    assert "Overall: PASSED" in capsys.readouterr().out
    assert (tmp_path / "out" / "passed" / "blink-debug").is_dir()


def test_main_exits_two_when_output_directory_is_unwritable(tmp_path, capsys):
    project = _firmware_project(tmp_path)
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")

    code = main(_argv(project, blocker, _fake_qemu(tmp_path, exit_code=0)))

    assert code == 2
    assert "Output directory is not writable" in capsys.readouterr().err
