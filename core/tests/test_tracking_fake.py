import pytest

from harness.tracking.fakes import FakeTrackingClient


def test_fake_tracking_client_records_calls_in_order():
    client = FakeTrackingClient(base_artifact_uri="file:///tmp/artifacts")

    run_id = client.start_run(run_name="examples", tags={"service": "wokwi"})
    client.log_params({"plan_size": 4})
    client.log_metric("jobs_passed", 4.0, step=1)
    client.set_tags({"aborted": "false"})
    client.log_text("Overall: PASSED\n", artifact_file="report.txt")
    client.log_artifacts("/tmp/results", artifact_path="results")

    assert client.get_artifact_uri() == f"file:///tmp/artifacts/{run_id}"

    client.end_run(status="ok")

    assert client.names() == [
        "start_run",
        "log_params",
        "log_metric",
        "set_tags",
        "log_text",
        "log_artifacts",
        "end_run",
    ]
    assert client.last("log_text").kwargs["artifact_file"] == "report.txt"
    assert client.active_run_id is None
    assert client.get_artifact_uri() is None


def test_fake_tracking_client_strict_lifecycle():
    client = FakeTrackingClient()

    with pytest.raises(RuntimeError, match="No active run"):
        client.log_metric("jobs_failed", 1.0)

    client.start_run(run_name="examples", tags={})

    with pytest.raises(RuntimeError, match="already active"):
        client.start_run(run_name="dup", tags={})

    client.end_run(status="ok")

    with pytest.raises(RuntimeError, match="No active run"):
        client.end_run(status="failed")

    with pytest.raises(LookupError, match="No log_text call"):
        client.last("log_text")


def test_fake_tracking_client_keeps_run_state():
    client = FakeTrackingClient()

    client.start_run(run_name="examples", tags={"service": "qemu"})
    client.log_metrics({"jobs_passed": 3.0, "jobs_skipped": 0.0})
    client.log_metric("jobs_passed", 4.0)
    client.set_tags({"aborted": "false"})
    client.end_run(status="failed")

    run = client.last_run
    assert run.run_id == "run_1"
    assert run.metrics == {"jobs_passed": 4.0, "jobs_skipped": 0.0}
    assert run.tags == {"service": "qemu", "aborted": "false"}
    assert run.status == "failed"
