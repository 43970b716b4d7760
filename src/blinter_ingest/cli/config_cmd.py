# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration inspection command."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ..config import ConfigError
from ..config_loader import load_config
from ..core.logging import fail


def config_show(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
) -> None:
    """Print the effective configuration for the project."""
    try:
        config = load_config(root.resolve())
    except ConfigError as exc:
        fail(str(exc), use_emoji=True)
        raise typer.Exit(code=2) from exc
    typer.echo(json.dumps(config.to_dict(), indent=2, sort_keys=True))
