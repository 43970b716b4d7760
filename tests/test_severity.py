# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for severity normalisation helpers."""

import pytest

from blinter_ingest.core.severity import (
    Severity,
    is_informational,
    normalize_severity,
    severity_from_code,
    severity_from_label,
    severity_rank,
)


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("E1", Severity.ERROR),
        ("SEC1", Severity.ERROR),
        ("W1", Severity.WARNING),
        ("S1", Severity.INFORMATION),
        ("P1", Severity.HINT),
        ("X1", Severity.INFORMATION),
        ("sec014", Severity.ERROR),
        ("w028", Severity.WARNING),
        ("", Severity.INFORMATION),
    ],
)
def test_severity_from_code_prefixes(code: str, expected: Severity) -> None:
    assert severity_from_code(code) is expected


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("INFO", Severity.INFORMATION),
        ("WARN", Severity.WARNING),
        ("warning", Severity.WARNING),
        ("ERROR", Severity.ERROR),
        ("FATAL", Severity.ERROR),
        (None, Severity.ERROR),
    ],
)
def test_severity_from_label(label: str | None, expected: Severity) -> None:
    assert severity_from_label(label) is expected


def test_normalize_severity_defaults_to_error() -> None:
    assert normalize_severity("info") is Severity.INFORMATION
    assert normalize_severity("hint") is Severity.HINT
    assert normalize_severity("fatal") is Severity.ERROR
    assert normalize_severity(None) is Severity.ERROR
    assert normalize_severity(Severity.WARNING) is Severity.WARNING


def test_severity_rank_orders_errors_first() -> None:
    ranks = [severity_rank(sev) for sev in (Severity.ERROR, Severity.WARNING, Severity.INFORMATION, Severity.HINT)]
    assert ranks == [0, 1, 2, 3]
    assert severity_rank("bogus") == 3
    assert severity_rank("warning") == 1


def test_is_informational() -> None:
    assert is_informational("info")
    assert not is_informational(Severity.HINT)
