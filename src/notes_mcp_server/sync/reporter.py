"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync cycles:

- ``format_sync_report`` -- full post-sync summary.
- ``format_sync_status`` -- one-paragraph orchestrator status.
- ``report_to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _label(result: SyncResult) -> str:
    if result.kind is None:
        return result.action.value
    if result.record_id is None:
        return f"{result.kind.value}s"
    return f"{result.kind.value} {result.record_id}"


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    lines.append(report.summary())
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    if report.pushed:
        lines.append("Pushed:")
        for r in report.pushed:
            lines.append(f"  {_label(r)}")
        lines.append("")

    if report.pulled:
        lines.append("Pulled (new):")
        for r in report.pulled:
            lines.append(f"  {_label(r)}")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  [{r.action.value}] {_label(r)}: {r.error}")
        lines.append("")
        lines.append(
            "Unsynced records are retried automatically on the next sync."
        )

    return "\n".join(lines).rstrip()


def format_sync_status(
    stage: str, running: bool, last_report: SyncReport | None
) -> str:
    """Describe the orchestrator's current state and last outcome."""
    lines = [f"Sync stage: {stage}" + (" (running)" if running else "")]
    if last_report is None:
        lines.append("No sync has run yet.")
    else:
        lines.append(f"Last sync: {last_report.summary()}")
        if last_report.completed_at:
            lines.append(f"Finished at: {last_report.completed_at}")
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.

    Args:
        report: The sync report.

    Returns:
        Dict with outcome, counts, and per-result details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "action": r.action.value,
            "success": r.success,
        }
        if r.kind is not None:
            entry["kind"] = r.kind.value
        if r.record_id is not None:
            entry["record_id"] = r.record_id
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "outcome": report.outcome.value,
        "stage": report.stage.value,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "pushed": report.pushed_count,
            "pulled": report.pulled_count,
            "failed": report.failed_count,
        },
        "results": results_list,
    }
