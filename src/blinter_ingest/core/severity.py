# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels normalising the Blinter vocabularies."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"
    HINT = "hint"


_SEVERITY_RANK: Final[dict[Severity, int]] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFORMATION: 2,
    Severity.HINT: 3,
}
_UNKNOWN_RANK: Final[int] = 3

_LABEL_ALIASES: Final[dict[str, Severity]] = {
    "info": Severity.INFORMATION,
    "information": Severity.INFORMATION,
    "warn": Severity.WARNING,
    "warning": Severity.WARNING,
    "hint": Severity.HINT,
}

# Ordered: "SEC" must be tested before the single-letter "S" prefix.
_CODE_PREFIX_RULES: Final[tuple[tuple[str, Severity], ...]] = (
    ("E", Severity.ERROR),
    ("SEC", Severity.ERROR),
    ("W", Severity.WARNING),
    ("S", Severity.INFORMATION),
    ("P", Severity.HINT),
)


def normalize_severity(value: Severity | str | None) -> Severity:
    """Coerce ``value`` into a :class:`Severity`.

    Args:
        value: Severity instance or free-form label such as ``"warn"``.

    Returns:
        Severity: Matching severity; unknown or empty labels map to ``ERROR``.
    """
    if isinstance(value, Severity):
        return value
    if not value:
        return Severity.ERROR
    return _LABEL_ALIASES.get(str(value).strip().lower(), Severity.ERROR)


def severity_from_label(token: str | None) -> Severity:
    """Map a legacy ``[SEVERITY]`` token onto a :class:`Severity`.

    ``INFO`` becomes information, ``WARN``/``WARNING`` become warning and
    everything else (``ERROR``, ``FATAL``) is treated as an error.
    """
    label = (token or "").strip().upper()
    if label == "INFO":
        return Severity.INFORMATION
    if label in {"WARN", "WARNING"}:
        return Severity.WARNING
    return Severity.ERROR


def severity_from_code(code: str | None, default: Severity = Severity.INFORMATION) -> Severity:
    """Infer severity from the rule code prefix used by the detailed dialect.

    Args:
        code: Rule identifier such as ``W028`` or ``SEC003``.
        default: Severity returned when no prefix matches.

    Returns:
        Severity: Severity derived from the code or ``default`` when unmatched.
    """
    normalized = (code or "").strip().upper()
    for prefix, severity in _CODE_PREFIX_RULES:
        if normalized.startswith(prefix):
            return severity
    return default


def severity_rank(value: Severity | str | None) -> int:
    """Return the sort rank for ``value`` (errors first, unknown last)."""
    if isinstance(value, Severity):
        return _SEVERITY_RANK[value]
    label = (value or "").strip().lower()
    for severity, rank in _SEVERITY_RANK.items():
        if severity.value == label:
            return rank
    return _UNKNOWN_RANK


def is_informational(value: Severity | str | None) -> bool:
    """Return ``True`` when ``value`` normalises to :attr:`Severity.INFORMATION`."""
    return normalize_severity(value) is Severity.INFORMATION


__all__ = [
    "Severity",
    "is_informational",
    "normalize_severity",
    "severity_from_code",
    "severity_from_label",
    "severity_rank",
]
