# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Report command: replay captured Blinter output through the pipeline."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final

import typer
from rich.text import Text

from ..config import ConfigError, IngestConfig
from ..config_loader import load_config
from ..core.logging import configure_verbose_logging, fail, ok, warn
from ..core.models import Issue, RunState, RunStatus
from ..core.severity import Severity
from ..runtime.console import detect_tty, get_console
from ..session import IngestSession
from ..store.scheduler import ManualTimerBackend

STDIN_MARKER: Final[str] = "-"
EXIT_CRITICAL: Final[int] = 1
EXIT_ERRORED: Final[int] = 2

_SEVERITY_STYLE: Final[dict[Severity, str]] = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFORMATION: "cyan",
    Severity.HINT: "dim",
}


def report_command(
    source: str = typer.Argument(..., help="File holding captured Blinter stdout, or '-' for stdin."),
    target: Path = typer.Option(..., "--target", "-t", help="Batch file the output belongs to."),
    exit_code: int = typer.Option(0, "--exit-code", help="Exit code reported by the Blinter process."),
    line: int | None = typer.Option(None, "--line", min=1, help="Only show issues on this line."),
    as_json: bool = typer.Option(False, "--json", help="Emit one JSON object per issue."),
    parsed: bool = typer.Option(False, "--parsed", help="Use the block parser instead of line streaming."),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root used for configuration."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline diagnostics to stderr."),
) -> None:
    """Ingest captured Blinter output and print the sorted issues."""
    try:
        config = load_config(root.resolve())
    except ConfigError as exc:
        fail(str(exc), use_emoji=True)
        raise typer.Exit(code=EXIT_ERRORED) from exc
    if verbose or config.output.verbose:
        configure_verbose_logging()

    text = _read_source(source, encoding=config.stream.encoding)
    session = IngestSession(config, timers=ManualTimerBackend())
    if parsed:
        status = session.ingest_parsed(target, text, exit_code)
    else:
        status = session.ingest_text(target, text, exit_code)
    issues = session.issues_at_line(target, line) if line is not None else session.issues(target)

    if as_json or config.output.output == "json":
        for issue in issues:
            typer.echo(json.dumps(issue.model_dump(mode="json"), sort_keys=True))
    else:
        _render_concise(issues, status, config)
    raise typer.Exit(code=_exit_code(issues, status))


def _read_source(source: str, *, encoding: str) -> str:
    if source == STDIN_MARKER:
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding=encoding, errors="replace")
    except OSError as exc:
        fail(f"Unable to read {source}: {exc}", use_emoji=True)
        raise typer.Exit(code=EXIT_ERRORED) from exc


def format_issue_lines(issue: Issue) -> list[str]:
    """Return the concise text rendering of ``issue``.

    The first line carries location, severity, code and classification;
    continuation lines hold multi-line detail and the variable trace.
    """
    message_lines = issue.message.splitlines() or [issue.message]
    code = f" [{issue.code}]" if issue.code else ""
    marker = "!" if issue.is_critical else " "
    lines = [
        f"{marker} {issue.file_path}:{issue.line}: {issue.severity.value}{code} "
        f"{message_lines[0]} ({issue.classification.value})"
    ]
    lines.extend(f"    {detail}" for detail in message_lines[1:])
    if issue.variable_trace:
        lines.append(f"    {issue.variable_name} assigned at:")
        lines.extend(f"      {entry}" for entry in issue.variable_trace)
    return lines


def _render_concise(issues: Sequence[Issue], status: RunStatus, config: IngestConfig) -> None:
    use_color = config.output.color and detect_tty()
    console = get_console(color=use_color, emoji=config.output.emoji)
    for issue in issues:
        for index, rendered in enumerate(format_issue_lines(issue)):
            text = Text(rendered)
            if use_color and index == 0:
                text.stylize(_SEVERITY_STYLE.get(issue.severity, ""))
            console.print(text)
    if status.state is RunState.ERRORED:
        fail(status.detail, use_emoji=config.output.emoji, use_color=use_color)
    elif issues:
        warn(status.detail, use_emoji=config.output.emoji, use_color=use_color)
    else:
        ok(status.detail, use_emoji=config.output.emoji, use_color=use_color)


def _exit_code(issues: Sequence[Issue], status: RunStatus) -> int:
    if status.state is RunState.ERRORED:
        return EXIT_ERRORED
    if any(issue.is_critical for issue in issues):
        return EXIT_CRITICAL
    return 0


__all__ = ["format_issue_lines", "report_command"]
