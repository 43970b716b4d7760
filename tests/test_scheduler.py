# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the timer backends and the flush scheduler."""

import asyncio

import pytest

from blinter_ingest.store.scheduler import (
    AsyncioTimerBackend,
    FlushScheduler,
    ManualTimerBackend,
    TimerBackend,
)


def test_manual_backend_fires_in_deadline_order() -> None:
    timers = ManualTimerBackend()
    fired: list[str] = []
    timers.call_later(0.2, lambda: fired.append("late"))
    timers.call_later(0.1, lambda: fired.append("early"))
    timers.call_later(0.1, lambda: fired.append("early-second"))

    assert timers.advance(0.05) == 0
    assert timers.advance(0.1) == 2
    assert fired == ["early", "early-second"]
    assert timers.pending() == 1
    assert timers.advance(1.0) == 1
    assert timers.now == pytest.approx(1.15)


def test_manual_backend_skips_cancelled_timers() -> None:
    timers = ManualTimerBackend()
    fired: list[int] = []
    handle = timers.call_later(0.1, lambda: fired.append(1))
    handle.cancel()
    assert timers.pending() == 0
    assert timers.advance(1) == 0
    assert fired == []


def test_backends_satisfy_protocol() -> None:
    assert isinstance(ManualTimerBackend(), TimerBackend)
    assert isinstance(AsyncioTimerBackend(), TimerBackend)


def test_schedule_coalesces_requests() -> None:
    timers = ManualTimerBackend()
    scheduler = FlushScheduler(timers, 0.075)
    calls: list[str] = []

    assert scheduler.schedule("a", lambda: calls.append("a")) is True
    assert scheduler.schedule("a", lambda: calls.append("dup")) is False
    assert scheduler.schedule("b", lambda: calls.append("b")) is True
    assert scheduler.pending("a")

    timers.advance(0.075)

    assert calls == ["a", "b"]
    assert not scheduler.pending("a")
    assert scheduler.schedule("a", lambda: calls.append("again")) is True


def test_rearm_restarts_the_delay() -> None:
    timers = ManualTimerBackend()
    scheduler = FlushScheduler(timers, 1.0)
    calls: list[int] = []

    scheduler.schedule("k", lambda: calls.append(1))
    timers.advance(0.5)
    scheduler.rearm("k", lambda: calls.append(2))
    timers.advance(0.6)
    assert calls == []
    timers.advance(0.4)
    assert calls == [2]


def test_cancel_prevents_stale_fire() -> None:
    timers = ManualTimerBackend()
    scheduler = FlushScheduler(timers, 0.1)
    calls: list[int] = []

    scheduler.schedule("k", lambda: calls.append(1))
    assert scheduler.cancel("k") is True
    assert scheduler.cancel("k") is False
    scheduler.schedule("other", lambda: calls.append(2))
    scheduler.cancel_all()
    timers.advance(1)
    assert calls == []


def test_asyncio_backend_runs_callback() -> None:
    async def scenario() -> list[int]:
        fired: list[int] = []
        done = asyncio.Event()
        backend = AsyncioTimerBackend()
        backend.call_later(0.01, lambda: (fired.append(1), done.set()))
        await asyncio.wait_for(done.wait(), timeout=1)
        return fired

    assert asyncio.run(scenario()) == [1]
