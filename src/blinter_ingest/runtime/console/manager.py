# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rich consoles for issue listings and status messages."""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import TextIO

from rich.console import Console


def detect_tty(stream: TextIO | None = None) -> bool:
    """Return ``True`` when ``stream`` (stdout by default) is a terminal."""
    target = sys.stdout if stream is None else stream
    try:
        return target.isatty()
    except (AttributeError, ValueError):
        return False


@lru_cache(maxsize=8)
def _build_console(*, color: bool, emoji: bool, stderr: bool, tty: bool) -> Console:
    styled = color and tty
    return Console(
        stderr=stderr,
        color_system="auto" if styled else None,
        force_terminal=tty,
        no_color=not styled,
        emoji=emoji,
        highlight=False,
        soft_wrap=True,
    )


def get_console(*, color: bool, emoji: bool, stderr: bool = False) -> Console:
    """Return a shared console writing to stdout, or stderr when requested.

    Colour only applies when the target stream is a terminal, so redirected
    issue listings stay plain text.
    """
    tty = detect_tty(sys.stderr if stderr else sys.stdout)
    return _build_console(color=color, emoji=emoji, stderr=stderr, tty=tty)


__all__ = ["detect_tty", "get_console"]
