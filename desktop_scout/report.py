"""Render inspection results as text or JSON-ready data."""

from typing import Any

from desktop_scout.models.result import (
    InspectionBatchResult,
    InspectionResult,
    ResolutionVerdict,
)

STATUS_SYMBOLS = {
    "ok": "✅",
    "broken": "❌",
    "warning": "⚠️",
    "skipped": "⏭️",
}


def reported_results(
    batch: InspectionBatchResult, *, include_all: bool = False
) -> tuple[InspectionResult, ...]:
    if include_all:
        return batch.results
    return batch.with_status("broken", "warning")


def format_verdict(verdict: ResolutionVerdict | None) -> dict[str, Any] | None:
    if verdict is None:
        return None
    return {
        "kind": verdict.kind,
        "reason": verdict.reason,
        "resolved_path": str(verdict.resolved_path) if verdict.resolved_path else None,
    }


def format_result(result: InspectionResult) -> dict[str, Any]:
    return {
        "desktop_file": str(result.source_path),
        "name": result.name,
        "exec": result.exec,
        "try_exec": result.try_exec,
        "hidden": result.hidden,
        "no_display": result.no_display,
        "status": result.status,
        "skip_reason": result.skip_reason,
        "try_exec_verdict": format_verdict(result.try_exec_verdict),
        "exec_verdict": format_verdict(result.exec_verdict),
        "script_arg_warning": result.script_arg_warning,
        "env_assignments": [list(pair) for pair in result.env_assignments],
    }


def format_output(
    batch: InspectionBatchResult, *, include_all: bool = False
) -> dict[str, Any]:
    """Format a batch for JSON output."""
    return {
        "total": len(batch),
        "ok": batch.count("ok"),
        "broken": batch.count("broken"),
        "warnings": batch.count("warning"),
        "skipped": batch.count("skipped"),
        "interrupted": batch.interrupted,
        "results": [
            format_result(r) for r in reported_results(batch, include_all=include_all)
        ],
    }


def _describe(result: InspectionResult) -> list[str]:
    symbol = STATUS_SYMBOLS.get(result.status, "?")
    lines = [f"{symbol} {result.source_path}"]
    if result.name:
        lines.append(f"  Name: {result.name}")
    if result.exec is not None:
        lines.append(f"  Exec: {result.exec}")
    if result.try_exec is not None:
        lines.append(f"  TryExec: {result.try_exec}")
    if result.env_assignments:
        env = " ".join(f"{k}={v}" for k, v in result.env_assignments)
        lines.append(f"  Env: {env}")
    lines.append(f"  Hidden: {result.hidden} | NoDisplay: {result.no_display}")
    if result.skip_reason:
        lines.append(f"  Skipped: {result.skip_reason}")
    if result.try_exec_verdict and not result.try_exec_verdict.is_ok:
        lines.append(f"  TryExec problem: {result.try_exec_verdict.reason}")
    if result.exec_verdict and not result.exec_verdict.is_ok:
        lines.append(f"  Exec problem: {result.exec_verdict.reason}")
    if result.script_arg_warning:
        lines.append(f"  Warning: {result.script_arg_warning}")
    return lines


def render_text(batch: InspectionBatchResult, *, include_all: bool = False) -> str:
    """Human-readable report of broken entries (or all entries)."""
    results = reported_results(batch, include_all=include_all)
    lines: list[str] = []

    if batch.interrupted:
        lines.append(
            f"Inspection interrupted; showing {len(batch)} completed file(s).\n"
        )

    if not results:
        lines.append("No broken desktop entries found.")
        return "\n".join(lines)

    heading = "Desktop entries" if include_all else "Broken .desktop entries"
    lines.append(f"{heading} ({len(results)}):\n")
    for result in results:
        lines.extend(_describe(result))
        lines.append("")

    return "\n".join(lines).rstrip("\n")
