# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reassemble newline-delimited lines from arbitrarily chunked output."""

from __future__ import annotations

import codecs
from typing import Final

DEFAULT_MAX_CARRY: Final[int] = 1024 * 1024


class LineAccumulator:
    """Hold a partial line between chunks and release complete lines.

    ``\\n`` terminates a line and a trailing ``\\r`` is dropped. A carry that
    outgrows ``max_carry`` characters is released as a line of its own so a
    producer that never emits a newline cannot grow memory without bound.
    """

    def __init__(self, *, encoding: str = "utf-8", max_carry: int = DEFAULT_MAX_CARRY) -> None:
        self._carry = ""
        self._max_carry = max(1, max_carry)
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    @property
    def carry(self) -> str:
        """Return the buffered partial line."""
        return self._carry

    def feed(self, chunk: str | bytes) -> list[str]:
        """Append ``chunk`` and return every line it completes."""
        text = self._decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        if not text:
            return []
        buffer = self._carry + text
        *complete, self._carry = buffer.split("\n")
        lines = [line.removesuffix("\r") for line in complete]
        if len(self._carry) > self._max_carry:
            lines.append(self._carry.removesuffix("\r"))
            self._carry = ""
        return lines

    def finish(self) -> list[str]:
        """Flush the decoder and return the non-empty remainder, if any."""
        tail = self._carry + self._decoder.decode(b"", final=True)
        self._carry = ""
        self._decoder.reset()
        remaining = tail.removesuffix("\r")
        return [remaining] if remaining else []


__all__ = ["DEFAULT_MAX_CARRY", "LineAccumulator"]
