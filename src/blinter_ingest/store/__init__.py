# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Issue store and flush scheduling primitives."""

from __future__ import annotations

from .issue_store import IssueStore, sort_issues
from .scheduler import AsyncioTimerBackend, FlushScheduler, ManualTimerBackend, TimerBackend, TimerHandle

__all__ = [
    "AsyncioTimerBackend",
    "FlushScheduler",
    "IssueStore",
    "ManualTimerBackend",
    "TimerBackend",
    "TimerHandle",
    "sort_issues",
]
