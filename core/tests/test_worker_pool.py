from __future__ import annotations

import pytest

from harness.api import run_plan
from harness.contracts import ExamplePlan
from harness.orchestration import TerminationSignal, WorkerPool, effective_parallelism
from harness.testkit import ScriptedGateway


def _plan(size: int) -> ExamplePlan:
    return ExamplePlan.from_examples(
        [f"examples/ex{index}.rs" for index in range(size)], variants=("debug",)
    )


def _statuses(summary) -> list[str]:
    return [outcome.status for outcome in summary.outcomes]


def test_all_jobs_pass(tmp_path):
    gateway = ScriptedGateway()

    summary = run_plan(_plan(3), gateway, output_root=tmp_path, parallelism=2)

    assert summary.total == 3
    assert summary.passed == 3
    assert summary.failed == 0
    assert summary.aborted is False
    assert summary.status == "passed"
    assert sorted(gateway.simulated()) == ["ex0-debug", "ex1-debug", "ex2-debug"]


def test_build_failure_aborts_sequential_run(tmp_path):
    gateway = ScriptedGateway(build={"ex1-debug": "failed"})

    summary = run_plan(_plan(4), gateway, output_root=tmp_path, parallelism=1)

    assert _statuses(summary) == ["passed", "build-failed", "skipped", "skipped"]
    assert gateway.built() == ["ex0-debug", "ex1-debug"]
    assert summary.aborted is True
    assert summary.status == "failed"


def test_continue_on_error_runs_every_job(tmp_path):
    gateway = ScriptedGateway(build={"ex1-debug": "failed"})

    summary = run_plan(
        _plan(4), gateway, output_root=tmp_path, parallelism=1, continue_on_error=True
    )

    assert _statuses(summary) == ["passed", "build-failed", "passed", "passed"]
    assert len(gateway.built()) == 4
    assert summary.aborted is False
    assert summary.status == "failed"


def test_simulate_failure_is_filed_under_its_status(tmp_path):
    gateway = ScriptedGateway(simulate={"ex0-debug": "failed"})

    summary = run_plan(_plan(1), gateway, output_root=tmp_path, parallelism=1)

    outcome = summary.outcomes[0]
    assert outcome.status == "simulate-failed"
    assert outcome.stage == "simulate"
    job_dir = tmp_path / "failed" / "simulate-failed" / "ex0-debug"
    assert (job_dir / "outcome.json").exists()
    assert (job_dir / "ex0-debug.txt").read_text(encoding="utf-8").startswith("serial ex0-debug")
    assert "==> simulate (failed)" in (job_dir / "log.txt").read_text(encoding="utf-8")


def test_in_flight_jobs_finish_after_abort(tmp_path):
    gateway = ScriptedGateway(
        build={"ex0-debug": "failed"},
        delay_s={"ex0-debug": 0.1, "ex1-debug": 0.3},
    )

    summary = run_plan(_plan(5), gateway, output_root=tmp_path, parallelism=2)

    assert _statuses(summary) == ["build-failed", "passed", "skipped", "skipped", "skipped"]
    assert sorted(gateway.built()) == ["ex0-debug", "ex1-debug"]
    assert gateway.simulated() == ["ex1-debug"]
    assert summary.aborted is True


@pytest.mark.parametrize(
    ("size", "parallelism", "continue_on_error"),
    [(1, 1, False), (4, 1, True), (4, 2, False), (4, 4, True), (7, 3, False), (7, 7, True)],
)
def test_every_job_gets_exactly_one_outcome(tmp_path, size, parallelism, continue_on_error):
    gateway = ScriptedGateway(
        build={"ex2-debug": "failed"},
        simulate={"ex5-debug": "infra-error"},
        delay_s=0.01,
    )

    summary = run_plan(
        _plan(size),
        gateway,
        output_root=tmp_path,
        parallelism=parallelism,
        continue_on_error=continue_on_error,
    )

    job_ids = [outcome.job_id for outcome in summary.outcomes]
    assert job_ids == [f"ex{index}-debug" for index in range(size)]
    assert summary.total == size
    assert sum(summary.counts().values()) == size


def test_full_parallelism_loses_nothing(tmp_path):
    for attempt in range(5):
        gateway = ScriptedGateway(delay_s=0.05)
        root = tmp_path / f"attempt{attempt}"

        summary = run_plan(_plan(8), gateway, output_root=root, parallelism=8)

        assert summary.passed == 8
        assert len({outcome.job_id for outcome in summary.outcomes}) == 8
        assert len(list((root / "passed").iterdir())) == 8
        assert gateway.max_active >= 2


def test_concurrency_never_exceeds_parallelism(tmp_path):
    gateway = ScriptedGateway(delay_s=0.02)

    run_plan(_plan(6), gateway, output_root=tmp_path, parallelism=2)

    assert gateway.max_active <= 2


def test_worker_crash_is_contained(tmp_path):
    gateway = ScriptedGateway(raise_on={"ex1-debug"})

    summary = run_plan(
        _plan(3), gateway, output_root=tmp_path, parallelism=2, continue_on_error=True
    )

    assert _statuses(summary) == ["passed", "infra-error", "passed"]
    crashed = summary.outcomes[1]
    assert "RuntimeError: scripted crash in ex1-debug" in crashed.log


def test_jobs_are_skipped_once_signal_is_set(tmp_path):
    gateway = ScriptedGateway()
    signal = TerminationSignal()
    signal.set("stop requested")
    pool = WorkerPool(gateway, output_root=tmp_path, signal=signal)

    outcomes = pool.run(_plan(3), parallelism=2)

    assert [outcome.status for outcome in outcomes] == ["skipped"] * 3
    assert gateway.calls == []


def test_empty_plan_finishes_immediately(tmp_path):
    summary = run_plan(ExamplePlan(), ScriptedGateway(), output_root=tmp_path)

    assert summary.total == 0
    assert summary.status == "passed"


def test_effective_parallelism(monkeypatch):
    monkeypatch.setattr("harness.orchestration.pool.os.cpu_count", lambda: 6)
    assert effective_parallelism(0) == 6
    assert effective_parallelism(3) == 3

    monkeypatch.setattr("harness.orchestration.pool.os.cpu_count", lambda: None)
    assert effective_parallelism(0) == 1

    with pytest.raises(ValueError, match=">= 0"):
        effective_parallelism(-1)
