"""Result formatting for the CLI and the MCP host.

- ``format_result`` -- one-line (plus diff) human-readable outcome.
- ``result_to_json`` -- structured dict for ``--json`` and MCP output.
- ``format_sync_all_report`` / ``sync_all_to_json`` -- per-kind summary.
- ``format_status`` -- tracked resources from the state store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .models import ResourceKind, SyncOutcome

if TYPE_CHECKING:
    from .models import OperationResult, SyncAllReport
    from .state import InstanceConfig

_OUTCOME_LABELS = {
    SyncOutcome.SUCCEEDED: "OK",
    SyncOutcome.SKIPPED: "SKIPPED",
    SyncOutcome.CANCELLED: "CANCELLED",
    SyncOutcome.FAILED: "FAILED",
}


# ------------------------------------------------------------------
# Single operation
# ------------------------------------------------------------------


def format_result(result: OperationResult, include_diff: bool = True) -> str:
    """Format an operation result as human-readable text.

    Failures name the phase so the user can tell which step broke.
    """
    label = _OUTCOME_LABELS[result.outcome]
    target = f" {result.key}" if result.key else ""
    if result.outcome == SyncOutcome.FAILED and result.phase:
        line = f"[{label}] {result.operation.value}{target} ({result.phase}): {result.message}"
    else:
        line = f"[{label}] {result.operation.value}{target}: {result.message}"

    lines = [line]
    if result.report is not None:
        lines.append(format_sync_all_report(result.report))
    if include_diff and result.diff:
        lines.append("")
        lines.append(result.diff.rstrip("\n"))
    return "\n".join(lines)


def result_to_json(result: OperationResult) -> dict[str, Any]:
    """Convert an operation result to a JSON-serialisable dict."""
    data: dict[str, Any] = {
        "operation": result.operation.value,
        "outcome": result.outcome.value,
        "message": result.message,
        "key": result.key,
        "kind": result.kind.value if result.kind else None,
        "trail": [state.value for state in result.trail],
    }
    if result.phase:
        data["phase"] = result.phase
    if result.error_type:
        data["error_type"] = result.error_type
    if result.diff:
        data["diff"] = result.diff
    if result.report is not None:
        data["report"] = sync_all_to_json(result.report)
    return data


# ------------------------------------------------------------------
# Sync all
# ------------------------------------------------------------------


def format_sync_all_report(report: SyncAllReport) -> str:
    """Summarise a sync-all run per kind."""
    lines = [
        f"Instance {report.instance_id}: {report.total_written} files written",
        f"Started: {report.started_at}",
    ]
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    for summary in report.kinds:
        if summary.error:
            lines.append(f"  {summary.kind.value}: error: {summary.error}")
        else:
            lines.append(
                f"  {summary.kind.value}: {summary.written} written, "
                f"{summary.ignored} ignored"
            )
    return "\n".join(lines)


def sync_all_to_json(report: SyncAllReport) -> dict[str, Any]:
    return {
        "instance_id": report.instance_id,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "total_written": report.total_written,
        "kinds": [
            {
                "kind": s.kind.value,
                "written": s.written,
                "ignored": s.ignored,
                "error": s.error,
            }
            for s in report.kinds
        ],
    }


# ------------------------------------------------------------------
# Status
# ------------------------------------------------------------------


def format_status(config: InstanceConfig) -> str:
    """List tracked resources grouped by kind."""
    lines = [f"Instance: {config.instance_id or '(not set)'}"]
    for kind in ResourceKind:
        records = config.resources.get(kind, {})
        lines.append(f"{kind.value} ({len(records)}):")
        for key, record in sorted(records.items()):
            synced = record.last_synced_at or "never"
            lines.append(f"  {key} -> {record.remote_id} (last synced: {synced})")
    return "\n".join(lines)


def status_to_json(config: InstanceConfig) -> dict[str, Any]:
    return config.to_document()
