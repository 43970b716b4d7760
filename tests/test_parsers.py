# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests covering the Blinter output parser."""

import random
import time

import pytest

from blinter_ingest.core.models import RawFinding
from blinter_ingest.core.severity import Severity
from blinter_ingest.parsers import BlinterParser, parse_blinter_output


def test_parse_single_legacy_line() -> None:
    findings = parse_blinter_output("[ERROR] (CMD001) -> Missing argument on line 3")
    assert len(findings) == 1
    finding = findings[0]
    assert isinstance(finding, RawFinding)
    assert finding.severity is Severity.ERROR
    assert finding.code == "CMD001"
    assert finding.line == 3
    assert finding.description == "Missing argument"
    assert finding.dialect == "legacy"


def test_parse_legacy_warning() -> None:
    findings = parse_blinter_output("[WARN] (W002) -> X on line 5")
    assert [(f.severity, f.code, f.line) for f in findings] == [(Severity.WARNING, "W002", 5)]


def test_parse_multiple_lines_ignores_noise() -> None:
    stdout = "[INFO] (I001) -> Note about something on line 1\nSome unrelated log\n[WARN] (W002) -> Something on line 5"
    findings = parse_blinter_output(stdout)
    assert [f.severity for f in findings] == [Severity.INFORMATION, Severity.WARNING]


def test_parse_fatal_maps_to_error() -> None:
    findings = parse_blinter_output("  [FATAL] (F9) -> Broken script on line 12  \r\n")
    assert findings[0].severity is Severity.ERROR
    assert findings[0].line == 12


def test_parse_detailed_block_collects_labels_in_order() -> None:
    stdout = "\n".join(
        [
            "Line 2: Errorlevel handling difference (W028)",
            "  - Explanation: .bat and .cmd differ",
            "  - Recommendation: Use .cmd",
            "  - Context: errorlevel reset",
            "",
            "Unrelated trailer",
        ]
    )
    findings = parse_blinter_output(stdout)
    assert len(findings) == 1
    finding = findings[0]
    assert finding.code == "W028"
    assert finding.line == 2
    assert finding.severity is Severity.WARNING
    assert finding.dialect == "detailed"
    assert finding.description == (
        "Errorlevel handling difference"
        "\nExplanation: .bat and .cmd differ"
        "\nRecommendation: Use .cmd"
        "\nContext: errorlevel reset"
    )


def test_parse_detailed_bare_detail_text() -> None:
    findings = parse_blinter_output("Line 7: Hardcoded path (SEC004)\n  - consider %ProgramFiles%\n")
    assert findings[0].severity is Severity.ERROR
    assert findings[0].description == "Hardcoded path\nconsider %ProgramFiles%"


def test_detail_block_stops_at_non_dash_line_and_reparses_it() -> None:
    stdout = "Line 1: Style nit (S001)\n  - Why: looks odd\n[ERROR] (E100) -> Bad thing on line 9\n  - ignored detail"
    findings = parse_blinter_output(stdout)
    assert [(f.code, f.line) for f in findings] == [("S001", 1), ("E100", 9)]
    assert findings[0].description == "Style nit\nWhy: looks odd"
    assert findings[1].description == "Bad thing"


def test_interleaved_dialects_preserve_discovery_order() -> None:
    stdout = "\n".join(
        [
            "[WARN] (W001) -> first on line 4",
            "Line 3: second (P010)",
            "  - Note: perf",
            "[INFO] (I001) -> third on line 1",
            "Line 8: fourth (X999)",
        ]
    )
    findings = parse_blinter_output(stdout)
    assert [f.code for f in findings] == ["W001", "P010", "I001", "X999"]
    assert findings[1].severity is Severity.HINT
    assert findings[3].severity is Severity.INFORMATION


def test_line_zero_is_clamped() -> None:
    findings = parse_blinter_output("[WARN] (W1) -> odd on line 0")
    assert findings[0].line == 1


@pytest.mark.parametrize("payload", [None, "", "\n\n", b"\xff\xfe[WARN] (W1) -> x on line 2", ["a", "b"]])
def test_parser_is_total(payload: object) -> None:
    findings = parse_blinter_output(payload)  # type: ignore[arg-type]
    assert isinstance(findings, list)


def test_parser_survives_random_input() -> None:
    rng = random.Random(1234)
    alphabet = "[]()->:-Line on 0123456789 WARNERRORINFO\n\r\t abc"
    for _ in range(200):
        text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 400)))
        findings = parse_blinter_output(text)
        assert isinstance(findings, list)
        for finding in findings:
            assert finding.line >= 1
            assert finding.code


def test_text_parser_accepts_line_sequences() -> None:
    findings = BlinterParser.parse(["[INFO] (I1) -> hello on line 2", "Line 4: world (E7)"], "")
    assert [f.code for f in findings] == ["I1", "E7"]


_LONG_RUN = 200_000


@pytest.mark.parametrize(
    "line",
    [
        "[WARN] (W1) -> a" + " " * _LONG_RUN + "b",
        "[WARN] (W1) ->" + " " * _LONG_RUN + "b",
        "Line 1: a" + " " * _LONG_RUN + "b",
        "Line 1:" + " " * _LONG_RUN + "x",
        "Line 1: x (" + "a" * _LONG_RUN,
        "[ERROR] (E1) -> " + "x on line 1 " * (_LONG_RUN // 12) + "tail",
    ],
)
def test_parser_stays_linear_on_long_lines(line: str) -> None:
    started = time.perf_counter()
    parse_blinter_output(line)
    assert time.perf_counter() - started < 1.0


def test_detail_lines_with_long_whitespace_are_consumed_quickly() -> None:
    stdout = "Line 3: Header (W1)\n  - Note: a" + " " * _LONG_RUN + "b\n"
    started = time.perf_counter()
    findings = parse_blinter_output(stdout)
    assert time.perf_counter() - started < 1.0
    assert findings[0].description.startswith("Header\nNote: a")
    assert findings[0].description.endswith("b")


def test_oversized_line_number_is_clamped() -> None:
    findings = parse_blinter_output("[WARN] (W1) -> huge on line " + "9" * 5000)
    assert findings[0].line == 1
