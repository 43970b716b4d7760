# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing status messages and the verbose diagnostic logger."""

from __future__ import annotations

import logging
import sys
from typing import Final

from rich.text import Text

from ...runtime.console.manager import detect_tty, get_console

PACKAGE_LOGGER_NAME: Final[str] = "blinter_ingest"
_VERBOSE_MARKER: Final[str] = "_blinter_ingest_verbose_configured"


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""
    return symbol if enable else ""


def configure_verbose_logging(level: int = logging.DEBUG) -> logging.Logger:
    """Stream package log records to stderr at ``level``.

    Repeated calls only adjust the level; the handler is attached once.

    Args:
        level: Minimum level emitted by the package logger.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level)
    if getattr(logger, _VERBOSE_MARKER, False):
        return logger
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    setattr(logger, _VERBOSE_MARKER, True)
    return logger


def _print_status(
    msg: str,
    *,
    style: str,
    use_emoji: bool,
    use_color: bool | None,
    stderr: bool = False,
) -> None:
    color_enabled = detect_tty(sys.stderr if stderr else sys.stdout) if use_color is None else use_color
    text = Text(msg)
    if color_enabled:
        text.stylize(style)
    get_console(color=color_enabled, emoji=use_emoji, stderr=stderr).print(text)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Report a clean run summary."""
    _print_status(f"{emoji('✅ ', use_emoji)}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Report a run summary that found issues."""
    _print_status(f"{emoji('⚠️ ', use_emoji)}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Report an errored run or unusable input on stderr."""
    _print_status(
        f"{emoji('❌ ', use_emoji)}{msg}",
        style="red",
        use_emoji=use_emoji,
        use_color=use_color,
        stderr=True,
    )
