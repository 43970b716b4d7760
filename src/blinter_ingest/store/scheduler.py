# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Timer backends and the per-key coalescing flush scheduler."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from functools import partial
from typing import Protocol, runtime_checkable

TimerCallback = Callable[[], None]


@runtime_checkable
class TimerHandle(Protocol):
    """Handle returned by a :class:`TimerBackend` for one scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not fired yet."""
        raise NotImplementedError


@runtime_checkable
class TimerBackend(Protocol):
    """Schedule callbacks after a delay on the host's event loop."""

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        raise NotImplementedError


class AsyncioTimerBackend:
    """Timer backend driven by an :mod:`asyncio` event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)


@dataclass(order=True, slots=True)
class _ManualTimer:
    deadline: float
    sequence: int
    callback: TimerCallback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerBackend:
    """Deterministic timer backend advanced explicitly by the host.

    Synchronous embedders call :meth:`advance` from their own loop; timers
    fire in deadline order, ties in scheduling order.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[_ManualTimer] = []
        self._sequence = itertools.count()

    @property
    def now(self) -> float:
        """Return the current virtual time in seconds."""
        return self._now

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        timer = _ManualTimer(self._now + max(0.0, delay), next(self._sequence), callback)
        heapq.heappush(self._queue, timer)
        return timer

    def pending(self) -> int:
        """Return the number of live (uncancelled) timers."""
        return sum(1 for timer in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that falls due.

        Returns:
            int: Number of callbacks executed.
        """
        target = self._now + max(0.0, seconds)
        fired = 0
        while self._queue and self._queue[0].deadline <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = timer.deadline
            timer.callback()
            fired += 1
        self._now = target
        return fired


class FlushScheduler:
    """Own at most one outstanding timer per key.

    :meth:`schedule` coalesces: while a timer is pending for a key further
    requests are ignored. :meth:`rearm` cancels and restarts instead.
    """

    def __init__(self, timers: TimerBackend, delay: float) -> None:
        self._timers = timers
        self._delay = delay
        self._handles: dict[Hashable, TimerHandle] = {}
        self._tokens: dict[Hashable, object] = {}

    @property
    def delay(self) -> float:
        """Return the scheduling delay in seconds."""
        return self._delay

    def pending(self, key: Hashable) -> bool:
        """Return ``True`` when a timer is outstanding for ``key``."""
        return key in self._handles

    def schedule(self, key: Hashable, callback: TimerCallback) -> bool:
        """Arm a timer for ``key`` unless one is already pending.

        Returns:
            bool: ``True`` when a new timer was armed.
        """
        if key in self._handles:
            return False
        self._arm(key, callback, self._delay)
        return True

    def rearm(self, key: Hashable, callback: TimerCallback, delay: float | None = None) -> None:
        """Cancel any pending timer for ``key`` and start a fresh one."""
        self.cancel(key)
        self._arm(key, callback, self._delay if delay is None else delay)

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending timer for ``key``; return whether one existed."""
        handle = self._handles.pop(key, None)
        self._tokens.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        """Cancel every outstanding timer."""
        for key in list(self._handles):
            self.cancel(key)

    def _arm(self, key: Hashable, callback: TimerCallback, delay: float) -> None:
        token = object()
        handle = self._timers.call_later(delay, partial(self._fire, key, token, callback))
        self._handles[key] = handle
        self._tokens[key] = token

    def _fire(self, key: Hashable, token: object, callback: TimerCallback) -> None:
        if self._tokens.get(key) is not token:
            return
        del self._tokens[key]
        self._handles.pop(key, None)
        callback()


__all__ = [
    "AsyncioTimerBackend",
    "FlushScheduler",
    "ManualTimerBackend",
    "TimerBackend",
    "TimerCallback",
    "TimerHandle",
]
