# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands."""

from __future__ import annotations

import typer

from .config_cmd import config_show
from .report import report_command

app = typer.Typer(
    help="Ingest and classify Blinter batch-file diagnostics.",
    no_args_is_help=True,
    add_completion=False,
)
app.command("report", help="Ingest captured Blinter output and print the sorted issues.")(report_command)
app.command("config", help="Print the effective configuration as JSON.")(config_show)


def main() -> None:
    """Console-script entry point."""
    app()


__all__ = ["app", "main"]
