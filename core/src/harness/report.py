from __future__ import annotations

from harness.contracts.summary import RunSummary


def render_report(summary: RunSummary) -> str:
    """Plain-text report: one line per job in plan order, then the totals."""
    width = max((len(outcome.job_id) for outcome in summary.outcomes), default=0)
    lines: list[str] = []
    for outcome in summary.outcomes:
        timing = "" if outcome.skipped else f"  ({outcome.duration_s:.1f}s)"
        lines.append(
            f"[{outcome.job.index:>3}] {outcome.job_id:<{width}}  {outcome.status:<15}"
            f" stage={outcome.stage}{timing}".rstrip()
        )

    lines.append("")
    lines.append("Run summary:")
    lines.append(f"  Total build time:    {summary.build_duration_s:.1f}s")
    lines.append(f"  Total simulate time: {summary.simulate_duration_s:.1f}s")
    lines.append(f"  Passed:  {summary.passed}")
    lines.append(
        f"  Failed:  {summary.failed} (build {summary.build_failed}, "
        f"simulate {summary.simulate_failed}, infra {summary.infra_error})"
    )
    lines.append(f"  Skipped: {summary.skipped}")
    if summary.aborted:
        lines.append("  Run aborted after the first failure; skipped jobs were never dispatched.")
    lines.append(f"Overall: {summary.status.upper()}")
    return "\n".join(lines) + "\n"
