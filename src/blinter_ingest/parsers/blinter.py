# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parser for Blinter's legacy single-line and detailed block output."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Final

from ..core.models import RawFinding
from ..core.severity import severity_from_code, severity_from_label
from .base import ParserInput, TextParser, coerce_line_number, ensure_lines

LEGACY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*+\[(?P<severity>INFO|WARN|WARNING|ERROR|FATAL)\]\s*+"
    r"\((?P<code>[^)]++)\)\s*+->\s*+(?P<description>.*?\S)\s++on line\s++(?P<line>\d++)\s*+$",
    re.IGNORECASE,
)
DETAILED_HEADER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*+Line\s++(?P<line>\d++):\s++(?P<message>.*?\S)\s*+\((?P<code>[A-Za-z0-9_+-]++)\)\s*+$",
    re.IGNORECASE,
)
DETAIL_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*+-(?P<body>.*)$")


def format_detail(line: str) -> str | None:
    """Render a ``- Label: value`` / ``- text`` detail line for appending.

    Returns:
        str | None: ``"\\nLabel: value"`` or ``"\\ntext"``, an empty string for a
        bare dash, and ``None`` when ``line`` is not a dash-prefixed detail line.
    """
    match = DETAIL_LINE_PATTERN.match(line)
    if not match:
        return None
    body = match.group("body").strip()
    if not body:
        return ""
    label, separator, value = body.partition(":")
    if separator and label.strip():
        return f"\n{label.strip()}: {value.strip()}"
    return f"\n{body}"


def _legacy_finding(match: re.Match[str]) -> RawFinding | None:
    code = match.group("code").strip()
    description = match.group("description").strip()
    if not code or not description:
        return None
    return RawFinding(
        severity=severity_from_label(match.group("severity")),
        code=code,
        description=description,
        line=coerce_line_number(match.group("line")),
        dialect="legacy",
    )


def _detailed_finding(match: re.Match[str], details: Sequence[str]) -> RawFinding | None:
    code = match.group("code").strip()
    message = match.group("message").strip()
    if not code or not message:
        return None
    return RawFinding(
        severity=severity_from_code(code),
        code=code,
        description=message + "".join(details),
        line=coerce_line_number(match.group("line")),
        dialect="detailed",
    )


def parse_blinter_lines(lines: Sequence[str]) -> list[RawFinding]:
    """Parse Blinter output lines into raw findings.

    The legacy dialect is tried before the detailed header on each line.
    A detailed header absorbs the dash-prefixed detail lines that follow it
    up to the first blank or non-dash line, which is then parsed normally.

    Args:
        lines: Output lines in emission order.

    Returns:
        list[RawFinding]: Findings in discovery order.
    """
    findings: list[RawFinding] = []
    index = 0
    total = len(lines)
    while index < total:
        line = lines[index]
        index += 1
        if not line.strip():
            continue
        legacy = LEGACY_PATTERN.match(line)
        if legacy:
            finding = _legacy_finding(legacy)
            if finding is not None:
                findings.append(finding)
            continue
        header = DETAILED_HEADER_PATTERN.match(line)
        if not header:
            continue
        details: list[str] = []
        while index < total:
            detail = format_detail(lines[index]) if lines[index].strip() else None
            if detail is None:
                break
            details.append(detail)
            index += 1
        finding = _detailed_finding(header, details)
        if finding is not None:
            findings.append(finding)
    return findings


def parse_blinter_output(text: ParserInput) -> list[RawFinding]:
    """Parse a complete or partial Blinter output buffer.

    The function is total: any input, including ``None`` and undecodable
    bytes, yields a (possibly empty) list.
    """
    return parse_blinter_lines(ensure_lines(text))


BlinterParser: Final[TextParser] = TextParser(parse_blinter_lines)


__all__ = [
    "BlinterParser",
    "DETAILED_HEADER_PATTERN",
    "DETAIL_LINE_PATTERN",
    "LEGACY_PATTERN",
    "format_detail",
    "parse_blinter_lines",
    "parse_blinter_output",
]
