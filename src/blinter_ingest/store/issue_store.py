# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-file issue state with run supersession and coalesced publishing.

Each file moves through ``idle -> running -> completed|errored -> idle``.
:meth:`IssueStore.start_run` allocates a new run id and immediately
supersedes whatever run was in flight; issues or completions tagged with an
older run id are dropped without complaint. Appended issues become visible
at the next flush, which is debounced per file so bursts of output publish
once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from functools import partial
from os import PathLike
from pathlib import Path

from ..config import StoreConfig
from ..core.models import Issue, RunState, RunStatus
from ..core.severity import severity_rank
from ..filesystem.paths import normalize_path_key
from .scheduler import FlushScheduler, TimerBackend

LOGGER = logging.getLogger(__name__)

FileKey = str
PathInput = str | PathLike[str] | Path
PublishCallback = Callable[[FileKey, tuple[Issue, ...], RunStatus], None]
TimeoutCallback = Callable[[FileKey, int], None]


def sort_issues(issues: Iterable[Issue]) -> tuple[Issue, ...]:
    """Order issues by severity rank then line, keeping discovery order on ties."""
    return tuple(sorted(issues, key=lambda issue: (severity_rank(issue.severity), issue.line)))


@dataclass(slots=True)
class _FileState:
    run_id: int = 0
    state: RunState = RunState.IDLE
    pending: list[Issue] = field(default_factory=list)
    visible: tuple[Issue, ...] = ()
    detail: str = ""
    exit_code: int | None = None


class IssueStore:
    """Own the live issue lists for every file and expose snapshots.

    Args:
        timers: Backend used for the flush debounce and the optional run timeout.
        config: Debounce window and run timeout.
        on_publish: Called after every flush with the sorted snapshot and status.
        on_timeout: Called when a run exceeds ``config.max_run_seconds``.
    """

    def __init__(
        self,
        timers: TimerBackend,
        config: StoreConfig | None = None,
        *,
        on_publish: PublishCallback | None = None,
        on_timeout: TimeoutCallback | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._files: dict[FileKey, _FileState] = {}
        self._run_counters: dict[FileKey, int] = {}
        self._flushes = FlushScheduler(timers, self._config.debounce_seconds)
        self._timeouts = FlushScheduler(timers, self._config.max_run_seconds or 0.0)
        self._on_publish = on_publish
        self._on_timeout = on_timeout

    @staticmethod
    def key_for(file: PathInput) -> FileKey:
        """Return the normalised key used to index ``file``."""
        return normalize_path_key(file)

    def start_run(self, file: PathInput) -> int:
        """Begin a new run for ``file``, superseding any run in flight.

        Returns:
            int: The new run id, one greater than the previous run for the file.
        """
        key = self.key_for(file)
        run_id = self._run_counters.get(key, 0) + 1
        self._run_counters[key] = run_id
        self._flushes.cancel(key)
        self._timeouts.cancel(key)

        previous = self._files.get(key)
        if previous is not None and previous.state is RunState.RUNNING:
            LOGGER.debug("run %s for %s superseded by run %s", previous.run_id, key, run_id)
        self._files[key] = _FileState(run_id=run_id, state=RunState.RUNNING, detail="running")
        if self._config.max_run_seconds:
            self._arm(self._timeouts, key, partial(self._expire, key, run_id))
        self._publish(key)
        return run_id

    def add_issue(self, file: PathInput, issue: Issue, run_id: int) -> bool:
        """Append ``issue`` to the pending list of ``run_id``.

        Returns:
            bool: ``False`` when the run is no longer current and the issue was discarded.
        """
        key = self.key_for(file)
        state = self._files.get(key)
        if state is None or state.run_id != run_id or state.state is not RunState.RUNNING:
            LOGGER.debug("discarding issue %s for %s from stale run %s", issue.id, key, run_id)
            return False
        state.pending.append(issue)
        self._arm(self._flushes, key, partial(self.flush, key))
        return True

    def flush(self, file: PathInput) -> tuple[Issue, ...]:
        """Publish the pending list of ``file`` as its visible diagnostics.

        This is a rendering checkpoint only; the run stays open.
        """
        key = self.key_for(file)
        self._flushes.cancel(key)
        state = self._files.get(key)
        if state is None:
            return ()
        state.visible = sort_issues(state.pending)
        self._publish(key)
        return state.visible

    def finalize_run(
        self,
        file: PathInput,
        run_id: int,
        exit_code: int | None,
        *,
        detail: str | None = None,
    ) -> bool:
        """Close ``run_id`` for ``file`` and perform the final flush.

        A zero exit code completes the run; anything else, including ``None``
        for a producer that never started, marks it errored.

        Returns:
            bool: ``False`` when the run was already superseded or closed.
        """
        key = self.key_for(file)
        state = self._files.get(key)
        if state is None or state.run_id != run_id or state.state is not RunState.RUNNING:
            LOGGER.debug("ignoring completion of stale run %s for %s", run_id, key)
            return False
        self._timeouts.cancel(key)
        state.exit_code = exit_code
        state.state = RunState.COMPLETED if exit_code == 0 else RunState.ERRORED
        state.detail = detail if detail is not None else _default_detail(exit_code, len(state.pending))
        self.flush(key)
        return True

    def clear(self, file: PathInput) -> None:
        """Drop all state for ``file`` and return it to idle."""
        key = self.key_for(file)
        self._flushes.cancel(key)
        self._timeouts.cancel(key)
        if self._files.pop(key, None) is not None:
            self._publish(key)

    def issues(self, file: PathInput) -> tuple[Issue, ...]:
        """Return the visible, sorted issues for ``file``."""
        state = self._files.get(self.key_for(file))
        return state.visible if state is not None else ()

    def issues_at_line(self, file: PathInput, line: int) -> tuple[Issue, ...]:
        """Return visible issues for ``file`` located on 1-based ``line``."""
        return tuple(issue for issue in self.issues(file) if issue.line == line)

    def status(self, file: PathInput) -> RunStatus:
        """Return the run status snapshot for ``file``."""
        return self._status_for(self.key_for(file))

    def current_run(self, file: PathInput) -> int | None:
        """Return the run id currently owning ``file``, if any."""
        state = self._files.get(self.key_for(file))
        return state.run_id if state is not None else None

    def is_current(self, file: PathInput, run_id: int) -> bool:
        """Return ``True`` while ``run_id`` is the open run for ``file``."""
        state = self._files.get(self.key_for(file))
        return state is not None and state.run_id == run_id and state.state is RunState.RUNNING

    def files(self) -> tuple[FileKey, ...]:
        """Return the keys of every file with tracked state."""
        return tuple(self._files)

    def shutdown(self) -> None:
        """Cancel every outstanding timer."""
        self._flushes.cancel_all()
        self._timeouts.cancel_all()

    def _status_for(self, key: FileKey) -> RunStatus:
        state = self._files.get(key)
        if state is None:
            return RunStatus()
        return RunStatus(
            state=state.state,
            detail=state.detail,
            run_id=state.run_id,
            exit_code=state.exit_code,
            issue_count=len(state.visible),
        )

    def _arm(self, scheduler: FlushScheduler, key: FileKey, callback: Callable[[], None]) -> None:
        # Without a timer the pending issues still publish at finalize_run.
        try:
            scheduler.schedule(key, callback)
        except RuntimeError as exc:
            LOGGER.debug("unable to schedule timer for %s: %s", key, exc)

    def _expire(self, key: FileKey, run_id: int) -> None:
        seconds = self._config.max_run_seconds
        if not self.finalize_run(key, run_id, None, detail=f"timed out after {seconds:g}s"):
            return
        LOGGER.warning("run %s for %s timed out after %ss", run_id, key, seconds)
        if self._on_timeout is not None:
            try:
                self._on_timeout(key, run_id)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("timeout hook failed for %s", key)

    def _publish(self, key: FileKey) -> None:
        if self._on_publish is None:
            return
        try:
            self._on_publish(key, self.issues(key), self._status_for(key))
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("publish callback failed for %s", key)


def _default_detail(exit_code: int | None, count: int) -> str:
    if exit_code is None:
        return "Blinter failed to start"
    if exit_code != 0:
        return f"Blinter exited with code {exit_code}"
    if count == 0:
        return "no issues found"
    return f"found {count} issue(s)"


__all__ = ["FileKey", "IssueStore", "PublishCallback", "TimeoutCallback", "sort_issues"]
