# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for finding classification and streamed-line analysis."""

import os
import time
from pathlib import Path

import pytest

from blinter_ingest.analysis.classifier import (
    LineContext,
    analyze_line,
    build_variable_trace,
    classify_message,
    create_issue,
    issue_from_finding,
    resolve_issue_path,
)
from blinter_ingest.analysis.variables import VariableIndex, build_variable_index
from blinter_ingest.core.models import MAX_COLUMN, Classification, DefinitionRecord, RawFinding
from blinter_ingest.core.severity import Severity


@pytest.mark.parametrize(
    ("message", "severity", "classification", "critical"),
    [
        ("Undefined variable 'FOO'", "information", Classification.UNDEFINED_VARIABLE, True),
        ("Possible infinite loop detected", "warning", Classification.POSSIBLE_INFINITE_LOOP, True),
        ("Duplicate label :end", "information", Classification.BAD_LABEL, True),
        ("Empty label found", "warning", Classification.BAD_LABEL, True),
        ("Syntax problem in IF", "information", Classification.SYNTAX_WARNING, True),
        ("Deprecated command", "warning", Classification.DEPRECATED, True),
        ("Deprecated command", "information", Classification.DEPRECATED, False),
        ("unreachable code detected", "warning", Classification.HEURISTIC, True),
        ("Something stupid happened", "information", Classification.HEURISTIC, True),
        ("Line is long", "information", Classification.INFO, False),
        ("Line is long", "hint", Classification.GENERAL, True),
        ("Missing argument", "error", Classification.GENERAL, True),
        ("", "information", Classification.INFO, False),
    ],
)
def test_classify_message_precedence(
    message: str,
    severity: str,
    classification: Classification,
    critical: bool,
) -> None:
    result = classify_message(message, severity)
    assert result.classification is classification
    assert result.is_critical is critical


def test_classification_precedence_prefers_earlier_rules() -> None:
    result = classify_message("undefined variable inside infinite loop with bad label", "warning")
    assert result.classification is Classification.UNDEFINED_VARIABLE


def test_classification_is_deterministic() -> None:
    first = classify_message("Deprecated SYNTAX usage", Severity.WARNING)
    second = classify_message("Deprecated SYNTAX usage", Severity.WARNING)
    assert first == second
    assert first.classification is Classification.SYNTAX_WARNING


def test_resolve_issue_path_precedence(tmp_path: Path) -> None:
    absolute = str(tmp_path / "abs.bat")
    default_file = str(tmp_path / "scripts" / "main.bat")

    assert resolve_issue_path(absolute, workspace_root="/elsewhere") == absolute
    assert resolve_issue_path("x.bat", workspace_root=str(tmp_path)) == str(tmp_path / "x.bat")
    assert resolve_issue_path("x.bat", default_file=default_file) == str(tmp_path / "scripts" / "x.bat")
    assert resolve_issue_path("x.bat") == os.path.join(os.getcwd(), "x.bat")
    assert resolve_issue_path("", default_file=default_file) == default_file
    assert resolve_issue_path(None) is None


def test_build_variable_trace_formats_entries() -> None:
    index = VariableIndex()
    index.record("FOO", DefinitionRecord(file="/tmp/a/run.bat", line=2, value="bar"))
    index.record("FOO", DefinitionRecord(file="/tmp/a/run.bat", line=None, value="baz"))
    index.record("FOO", DefinitionRecord(file=None, line=None, value=""))

    trace = build_variable_trace("foo", index)

    assert trace == ("run.bat line 2 = bar", "run.bat = baz")
    assert build_variable_trace("MISSING", index) is None


def test_analyze_bracketed_line_flags_heuristic(batch_file: Path) -> None:
    context = LineContext(default_file=str(batch_file), variable_index=VariableIndex())
    analysis = analyze_line("[WARN] (BL001) -> unreachable code detected on line 10", context)

    assert len(analysis.issues) == 1
    issue = analysis.issues[0]
    assert issue.severity is Severity.WARNING
    assert issue.classification is Classification.HEURISTIC
    assert issue.is_critical is True
    assert issue.line == 10
    assert issue.code == "BL001"
    assert issue.file_path == str(batch_file)
    assert issue.range.line == 9
    assert issue.range.end == MAX_COLUMN
    assert not analysis.opens_block


def test_analyze_bracketed_line_without_line_defaults_to_one(batch_file: Path) -> None:
    context = LineContext(default_file=str(batch_file))
    issue = analyze_line("[info] (I9) -> general advice", context).issues[0]
    assert issue.line == 1
    assert issue.message == "general advice"
    assert issue.classification is Classification.INFO


def test_analyze_general_line_builds_variable_trace(batch_file: Path) -> None:
    context = LineContext(
        workspace_root=str(batch_file.parent),
        default_file=str(batch_file),
        variable_index=build_variable_index(batch_file),
    )
    analysis = analyze_line("variable-sample.bat:7: error: Undefined variable 'FOO'", context)

    issue = analysis.issues[0]
    assert issue.classification is Classification.UNDEFINED_VARIABLE
    assert issue.variable_name == "FOO"
    assert issue.variable_trace is not None
    assert "2" in issue.variable_trace[0]
    assert "bar" in issue.variable_trace[0]
    assert issue.variable_trace[0].startswith("variable-sample.bat")
    assert issue.file_path == str(batch_file)
    assert issue.line == 7


def test_analyze_general_line_resolves_relative_path(tmp_path: Path) -> None:
    context = LineContext(workspace_root=str(tmp_path))
    issue = analyze_line("test.bat:3: warning: Possible bad label", context).issues[0]
    assert issue.file_path == str(tmp_path / "test.bat")
    assert issue.line == 3
    assert issue.classification is Classification.BAD_LABEL


def test_analyze_detailed_header_opens_block(batch_file: Path) -> None:
    context = LineContext(default_file=str(batch_file))
    analysis = analyze_line("Line 4: Performance tweak (P002)", context)
    assert analysis.opens_block
    assert analysis.issues[0].severity is Severity.HINT
    assert analysis.issues[0].code == "P002"


def test_streamed_assignment_feeds_later_trace(batch_file: Path) -> None:
    index = VariableIndex()
    context = LineContext(default_file=str(batch_file), variable_index=index)

    assert analyze_line("set RUNTIME_VAR=42", context).issues == ()
    assert analyze_line("setlocal EnableDelayedExpansion", context).issues == ()
    issue = analyze_line("[ERROR] (E042) -> Undefined variable RUNTIME_VAR on line 3", context).issues[0]

    assert index.lookup("RUNTIME_VAR")[0].line is None
    assert issue.variable_trace == ("variable-sample.bat = 42",)


def test_unmatched_line_yields_nothing() -> None:
    assert analyze_line("just some chatter", LineContext()).issues == ()


def test_create_issue_ids_are_unique() -> None:
    first = create_issue(severity="warning", message="a", file_path=None, line_number=0)
    second = create_issue(severity="warning", message="a", file_path=None, line_number=0)
    assert first.id != second.id
    assert first.line == 1


def test_non_undefined_messages_carry_no_trace() -> None:
    index = VariableIndex()
    index.record("FOO", DefinitionRecord(value="x"))
    issue = create_issue(
        severity="warning",
        message="Deprecated, see undefined  FOO",
        file_path=None,
        line_number=2,
        variable_index=index,
    )
    assert issue.variable_name is None
    assert issue.variable_trace is None


def test_issue_from_finding_uses_default_file(batch_file: Path) -> None:
    finding = RawFinding(severity=Severity.WARNING, code="W028", description="Errorlevel handling", line=2)
    issue = issue_from_finding(finding, LineContext(default_file=str(batch_file)))
    assert issue.file_path == str(batch_file)
    assert issue.classification is Classification.GENERAL
    assert issue.code == "W028"


_LONG_RUN = 200_000


@pytest.mark.parametrize(
    "line",
    [
        "[WARN] (W1) -> a" + " " * _LONG_RUN + "b",
        "[WARN] (W1) -> a on" + " " * _LONG_RUN + "b",
        "Line 1: a" + " " * _LONG_RUN + "b",
        "Line 1: x (" + "a" * _LONG_RUN,
        "run.bat:" + "1" * _LONG_RUN,
        "a:1:" * (_LONG_RUN // 4),
    ],
)
def test_analyze_line_stays_linear_on_long_lines(line: str) -> None:
    started = time.perf_counter()
    analyze_line(line, LineContext(default_file="/w/run.bat"))
    assert time.perf_counter() - started < 1.0


@pytest.mark.parametrize(
    "line",
    [
        "[WARN] (W1) -> huge on line " + "9" * 5000,
        "Line " + "9" * 5000 + ": huge (W1)",
        "run.bat:" + "9" * 5000 + ": error: huge",
    ],
)
def test_oversized_line_numbers_are_clamped(line: str) -> None:
    analysis = analyze_line(line, LineContext(default_file="/w/run.bat"))
    assert [issue.line for issue in analysis.issues] == [1]
