"""Tests for report rendering."""

import json
from pathlib import Path

from desktop_scout.models.result import (
    InspectionBatchResult,
    InspectionResult,
    ResolutionVerdict,
)
from desktop_scout.report import format_output, render_text
from desktop_scout.testing.factories import InspectionResultFactory


def _broken() -> InspectionResult:
    return InspectionResultFactory.build(
        source_path=Path("/apps/broken.desktop"),
        name="Broken",
        exec="FOO=1 gone-tool %U",
        try_exec="gone-tool",
        try_exec_verdict=ResolutionVerdict.missing("gone-tool"),
        exec_verdict=ResolutionVerdict.missing("gone-tool"),
        env_assignments=(("FOO", "1"),),
    )


def _skipped() -> InspectionResult:
    return InspectionResult(
        source_path=Path("/apps/hidden.desktop"),
        skipped=True,
        skip_reason="Hidden=true",
        hidden=True,
    )


def _ok() -> InspectionResult:
    return InspectionResultFactory.build(source_path=Path("/apps/ok.desktop"))


def test_format_output_empty() -> None:
    """Returns empty totals when no results."""
    assert format_output(InspectionBatchResult()) == {
        "total": 0,
        "ok": 0,
        "broken": 0,
        "warnings": 0,
        "skipped": 0,
        "interrupted": False,
        "results": [],
    }


def test_format_output_reports_broken_only_by_default() -> None:
    """Totals count everything; results list only problems."""
    batch = InspectionBatchResult(results=(_ok(), _broken(), _skipped()))

    output = format_output(batch)

    assert output["total"] == 3
    assert output["ok"] == 1
    assert output["broken"] == 1
    assert output["skipped"] == 1
    assert [r["desktop_file"] for r in output["results"]] == ["/apps/broken.desktop"]


def test_format_output_keeps_every_field() -> None:
    """Each result carries verdict kinds, reasons and metadata."""
    output = format_output(InspectionBatchResult(results=(_broken(),)))

    (result,) = output["results"]
    assert result["status"] == "broken"
    assert result["name"] == "Broken"
    assert result["exec_verdict"] == {
        "kind": "missing_executable",
        "reason": "Executable not found: gone-tool",
        "resolved_path": None,
    }
    assert result["try_exec_verdict"]["kind"] == "missing_executable"
    assert result["env_assignments"] == [["FOO", "1"]]
    assert result["skip_reason"] is None


def test_format_output_all_in_submission_order() -> None:
    """include_all keeps every result in order."""
    batch = InspectionBatchResult(results=(_skipped(), _ok(), _broken()))

    output = format_output(batch, include_all=True)

    assert [r["status"] for r in output["results"]] == ["skipped", "ok", "broken"]
    assert output["results"][1]["exec_verdict"]["resolved_path"] == "/usr/bin/true"


def test_json_output_is_deterministic() -> None:
    """The same batch always serializes to the same bytes."""
    batch = InspectionBatchResult(results=(_broken(), _skipped()))

    first = json.dumps(format_output(batch, include_all=True), indent=2)
    second = json.dumps(format_output(batch, include_all=True), indent=2)

    assert first == second


def test_render_text_no_problems() -> None:
    """Prints a friendly line when nothing is broken."""
    text = render_text(InspectionBatchResult(results=(_ok(), _skipped())))

    assert text == "No broken desktop entries found."


def test_render_text_broken_entry() -> None:
    """Broken entries list their keys and reasons."""
    text = render_text(InspectionBatchResult(results=(_ok(), _broken())))

    assert "Broken .desktop entries (1):" in text
    assert "❌ /apps/broken.desktop" in text
    assert "  Name: Broken" in text
    assert "  Env: FOO=1" in text
    assert "  TryExec problem: Executable not found: gone-tool" in text
    assert "  Exec problem: Executable not found: gone-tool" in text
    assert "/apps/ok.desktop" not in text


def test_render_text_warning_entry() -> None:
    """Interpreter warnings are shown."""
    result = InspectionResultFactory.build(
        source_path=Path("/apps/py.desktop"),
        script_arg_warning="Interpreter python3 is launched without a script argument",
    )

    text = render_text(InspectionBatchResult(results=(result,)))

    assert "⚠️ /apps/py.desktop" in text
    assert "  Warning: Interpreter python3" in text


def test_render_text_interrupted() -> None:
    """Partial batches say so."""
    text = render_text(InspectionBatchResult(results=(_ok(),), interrupted=True))

    assert text.startswith("Inspection interrupted; showing 1 completed file(s).")
