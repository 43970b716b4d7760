# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Public parser exports for converting Blinter output into findings."""

from __future__ import annotations

from .base import TextParser, ensure_lines
from .blinter import BlinterParser, parse_blinter_lines, parse_blinter_output

__all__ = [
    "BlinterParser",
    "TextParser",
    "ensure_lines",
    "parse_blinter_lines",
    "parse_blinter_output",
]
