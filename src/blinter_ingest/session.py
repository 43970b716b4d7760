# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Ingestion session tying the accumulator, classifier and issue store together."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable
from os import PathLike
from pathlib import Path

from .analysis.classifier import LineContext, analyze_line, create_issue, issue_from_finding
from .analysis.variables import VariableIndex, build_variable_index
from .config import IngestConfig
from .core.models import Issue, RawFinding, RunStatus
from .parsers.blinter import format_detail, parse_blinter_output
from .store.issue_store import FileKey, IssueStore, PublishCallback
from .store.scheduler import AsyncioTimerBackend, TimerBackend
from .streaming import LineAccumulator

LOGGER = logging.getLogger(__name__)

CancelHook = Callable[[], None]
PathInput = str | PathLike[str] | Path


class RunHandle:
    """Feed one run's output into the store.

    Every issue of the run is stored under the run's target file, even when a
    ``file:line: severity: message`` line names another path; that path is
    kept on :attr:`Issue.file_path` for display. Output arriving after the run
    was superseded is dropped. Every internal failure is logged and absorbed
    so producers never see an exception.
    """

    def __init__(
        self,
        *,
        store: IssueStore,
        key: FileKey,
        run_id: int,
        context: LineContext,
        config: IngestConfig,
        cancel: CancelHook | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._run_id = run_id
        self._context = context
        self._accumulator = LineAccumulator(
            encoding=config.stream.encoding,
            max_carry=config.stream.max_carry_chars,
        )
        self._stderr: deque[str] = deque(maxlen=config.stream.stderr_tail_lines or None)
        self._keep_stderr = config.stream.stderr_tail_lines > 0
        self._cancel = cancel
        self._cancelled = False
        self._held: Issue | None = None
        self._held_details: list[str] = []

    @property
    def file(self) -> FileKey:
        """Return the normalised target file."""
        return self._key

    @property
    def run_id(self) -> int:
        """Return the run id assigned by the store."""
        return self._run_id

    @property
    def variable_index(self) -> VariableIndex | None:
        """Return the run's live variable index."""
        return self._context.variable_index

    @property
    def active(self) -> bool:
        """Return ``True`` while this run still owns its file."""
        return self._store.is_current(self._key, self._run_id)

    def feed(self, chunk: str | bytes) -> None:
        """Consume a chunk of stdout; it may end mid-line."""
        if not self.active:
            return
        try:
            lines = self._accumulator.feed(chunk)
        except (UnicodeError, TypeError) as exc:
            LOGGER.debug("dropping undecodable chunk for %s: %s", self._key, exc)
            return
        for line in lines:
            self.feed_line(line)

    def feed_line(self, line: str) -> None:
        """Consume one complete stdout line."""
        if not self.active:
            return
        try:
            self._consume(line)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("failed to analyse Blinter output line for %s", self._key)

    def feed_stderr(self, text: str | bytes) -> None:
        """Retain the tail of stderr for the failure detail."""
        if not self._keep_stderr:
            return
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8", errors="replace")
        self._stderr.extend(line for line in text.splitlines() if line.strip())

    def add_findings(self, findings: Iterable[RawFinding]) -> int:
        """Classify pre-parsed findings and append them to the run.

        Returns:
            int: Number of issues accepted by the store.
        """
        accepted = 0
        for finding in findings:
            if not self.active:
                break
            try:
                issue = issue_from_finding(finding, self._context)
                if self._store.add_issue(self._key, issue, self._run_id):
                    accepted += 1
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("failed to ingest Blinter finding %s for %s", finding.code, self._key)
        return accepted

    def end(self, exit_code: int | None) -> RunStatus:
        """Drain buffered output and finalise the run.

        A run that was superseded or timed out keeps its final status; any
        header still waiting for detail lines is discarded with it.

        Args:
            exit_code: Producer exit code, or ``None`` when it failed to start.

        Returns:
            RunStatus: Status of the file after finalisation.
        """
        if not self.active:
            if self._held is not None:
                LOGGER.debug(
                    "dropping held %s issue for closed run %s of %s", self._held.code, self._run_id, self._key
                )
                self._held, self._held_details = None, []
            return self._store.status(self._key)
        for line in self._accumulator.finish():
            self.feed_line(line)
        self._release_held()
        self._store.finalize_run(self._key, self._run_id, exit_code, detail=self._failure_detail(exit_code))
        return self._store.status(self._key)

    def cancel(self) -> None:
        """Ask the producing process to stop; called at most once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._cancel is None:
            return
        try:
            self._cancel()
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("cancel hook failed for %s run %s", self._key, self._run_id)

    def _consume(self, line: str) -> None:
        if self._held is not None:
            detail = format_detail(line) if line.strip() else None
            if detail is not None:
                self._held_details.append(detail)
                return
            self._release_held()
        analysis = analyze_line(line, self._context)
        for issue in analysis.issues:
            if analysis.opens_block:
                self._held = issue
            else:
                self._store.add_issue(self._key, issue, self._run_id)

    def _release_held(self) -> None:
        held, details = self._held, self._held_details
        self._held, self._held_details = None, []
        if held is None:
            return
        if "".join(details):
            held = create_issue(
                severity=held.severity,
                message=held.message + "".join(details),
                code=held.code,
                file_path=held.file_path,
                line_number=held.line,
                variable_index=self._context.variable_index,
            )
        self._store.add_issue(self._key, held, self._run_id)

    def _failure_detail(self, exit_code: int | None) -> str | None:
        if exit_code == 0:
            return None
        head = "Blinter failed to start" if exit_code is None else f"Blinter exited with code {exit_code}"
        if self._stderr:
            return f"{head}: {self._stderr[-1].strip()}"
        return head


class IngestSession:
    """Track Blinter runs across files.

    Args:
        config: Session configuration; defaults apply when omitted.
        timers: Timer backend; defaults to the running asyncio loop.
        on_publish: Receives ``(file, issues, status)`` after every flush.
    """

    def __init__(
        self,
        config: IngestConfig | None = None,
        *,
        timers: TimerBackend | None = None,
        on_publish: PublishCallback | None = None,
    ) -> None:
        self._config = config or IngestConfig()
        self._store = IssueStore(
            timers or AsyncioTimerBackend(),
            self._config.store,
            on_publish=on_publish,
            on_timeout=self._handle_timeout,
        )
        self._handles: dict[FileKey, RunHandle] = {}

    @property
    def config(self) -> IngestConfig:
        """Return the active configuration."""
        return self._config

    @property
    def store(self) -> IssueStore:
        """Return the underlying issue store."""
        return self._store

    def begin(
        self,
        file: PathInput,
        *,
        cancel: CancelHook | None = None,
        variable_index: VariableIndex | None = None,
    ) -> RunHandle:
        """Start a run for ``file`` and return its handle.

        The previous run for the file, if still attached, is superseded and
        its cancel hook invoked so the producer can be stopped.

        Args:
            file: Batch file being linted.
            cancel: Hook asking the producing process to stop.
            variable_index: Pre-built index; scanned from ``file`` when omitted.

        Returns:
            RunHandle: Handle used to feed the run's output.
        """
        key = IssueStore.key_for(file)
        previous = self._handles.pop(key, None)
        if previous is not None and previous.active:
            previous.cancel()
        index = variable_index if variable_index is not None else build_variable_index(
            key, encoding=self._config.stream.encoding
        )
        run_id = self._store.start_run(key)
        workspace_root = self._config.workspace_root
        context = LineContext(
            workspace_root=str(workspace_root) if workspace_root is not None else None,
            default_file=key,
            variable_index=index,
        )
        handle = RunHandle(
            store=self._store,
            key=key,
            run_id=run_id,
            context=context,
            config=self._config,
            cancel=cancel,
        )
        self._handles[key] = handle
        return handle

    def ingest_text(self, file: PathInput, text: str | bytes, exit_code: int | None = 0) -> RunStatus:
        """Run a complete captured output through the streaming pipeline."""
        handle = self.begin(file)
        handle.feed(text)
        return handle.end(exit_code)

    def ingest_parsed(self, file: PathInput, text: str | bytes, exit_code: int | None = 0) -> RunStatus:
        """Run a complete captured output through the block parser."""
        handle = self.begin(file)
        handle.add_findings(parse_blinter_output(text))
        return handle.end(exit_code)

    def issues(self, file: PathInput) -> tuple[Issue, ...]:
        """Return the visible sorted issues for ``file``."""
        return self._store.issues(file)

    def issues_at_line(self, file: PathInput, line: int) -> tuple[Issue, ...]:
        """Return visible issues on 1-based ``line`` of ``file``."""
        return self._store.issues_at_line(file, line)

    def status(self, file: PathInput) -> RunStatus:
        """Return the run status of ``file``."""
        return self._store.status(file)

    def close(self, file: PathInput) -> None:
        """Forget ``file``: stop its producer and drop its diagnostics."""
        key = IssueStore.key_for(file)
        handle = self._handles.pop(key, None)
        if handle is not None and handle.active:
            handle.cancel()
        self._store.clear(key)

    def shutdown(self) -> None:
        """Cancel every active producer and outstanding timer."""
        for handle in list(self._handles.values()):
            if handle.active:
                handle.cancel()
        self._handles.clear()
        self._store.shutdown()

    def _handle_timeout(self, key: FileKey, run_id: int) -> None:
        handle = self._handles.get(key)
        if handle is not None and handle.run_id == run_id:
            handle.cancel()


__all__ = ["CancelHook", "IngestSession", "RunHandle"]
