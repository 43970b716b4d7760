# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from blinter_ingest.config import IngestConfig
from blinter_ingest.session import IngestSession
from blinter_ingest.store.scheduler import ManualTimerBackend

SAMPLE_BATCH = """@echo off
set FOO=bar
echo %FOO%
SET Greeting = hello world
call :missing
set foo=baz
"""


@pytest.fixture
def timers() -> ManualTimerBackend:
    """Return a deterministic timer backend."""
    return ManualTimerBackend()


@pytest.fixture
def batch_file(tmp_path: Path) -> Path:
    """Write a small batch script with a few assignments."""
    target = tmp_path / "variable-sample.bat"
    target.write_text(SAMPLE_BATCH, encoding="utf-8")
    return target


@pytest.fixture
def session(timers: ManualTimerBackend) -> IngestSession:
    """Return a session driven by the manual timer backend."""
    return IngestSession(IngestConfig(), timers=timers)
