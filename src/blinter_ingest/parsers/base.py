# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared parser infrastructure and helper utilities."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Final

from ..core.models import RawFinding

TextTransform = Callable[[Sequence[str]], list[RawFinding]]
ParserInput = str | bytes | Sequence[str] | None

_LINE_BREAK: Final[re.Pattern[str]] = re.compile(r"\r?\n|\r")


def ensure_lines(value: object) -> list[str]:
    """Normalise a text buffer or line sequence into a list of lines.

    ``None`` yields no lines, bytes are decoded leniently and any other
    object falls back to its string form.
    """
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        return _LINE_BREAK.split(bytes(value).decode("utf-8", errors="replace"))
    if isinstance(value, str):
        return _LINE_BREAK.split(value)
    if isinstance(value, Sequence):
        lines: list[str] = []
        for item in value:
            lines.extend(ensure_lines(item))
        return lines
    return _LINE_BREAK.split(str(value))


def coerce_line_number(raw: str | None) -> int:
    """Return ``raw`` as a 1-based line number, clamping invalid values to 1."""
    try:
        number = int(raw or "")
    except ValueError:
        return 1
    return max(1, number)


@dataclass(slots=True)
class TextParser:
    """Parse stdout via a text transformation function."""

    transform: TextTransform

    def parse(self, stdout: ParserInput, stderr: ParserInput = None) -> list[RawFinding]:
        """Return findings extracted from ``stdout``; ``stderr`` is ignored."""
        del stderr
        return self.transform(ensure_lines(stdout))


__all__ = ["ParserInput", "TextParser", "TextTransform", "coerce_line_number", "ensure_lines"]
