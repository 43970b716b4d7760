# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Variable assignment index built from a static pre-scan of a batch file."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from os import PathLike
from pathlib import Path
from types import MappingProxyType
from typing import Final

from ..core.models import DefinitionRecord
from ..filesystem.paths import normalize_path_key

LOGGER = logging.getLogger(__name__)

SET_ASSIGNMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\bset\b\s+(?P<name>[A-Za-z0-9_]+)\s*=\s*(?P<value>.*)$",
    re.IGNORECASE,
)


class VariableIndex:
    """Append-only map of upper-cased variable names to assignment history.

    The live lists never leave the instance; readers receive tuples or a
    read-only snapshot.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[DefinitionRecord]] = {}

    def record(self, name: str, record: DefinitionRecord) -> None:
        """Append ``record`` to the history of ``name`` (case-insensitive)."""
        if not name:
            return
        self._entries.setdefault(name.upper(), []).append(record)

    def lookup(self, name: str) -> tuple[DefinitionRecord, ...]:
        """Return the assignment history for ``name`` in encounter order."""
        return tuple(self._entries.get(name.upper(), ()))

    def names(self) -> tuple[str, ...]:
        """Return known variable names in first-seen order."""
        return tuple(self._entries)

    def snapshot(self) -> Mapping[str, tuple[DefinitionRecord, ...]]:
        """Return an immutable copy of the index."""
        return MappingProxyType({name: tuple(records) for name, records in self._entries.items()})

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.upper() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


def build_variable_index(path: str | PathLike[str] | Path, *, encoding: str = "utf-8") -> VariableIndex:
    """Scan ``path`` for ``set NAME=value`` assignments.

    Read failures yield an empty index so diagnostics can still flow without
    trace enrichment.

    Args:
        path: Batch file to scan.
        encoding: Text encoding used to decode the file.

    Returns:
        VariableIndex: Index populated with 1-based line numbers and trimmed values.
    """
    index = VariableIndex()
    try:
        file_key = normalize_path_key(path)
        content = Path(file_key).read_text(encoding=encoding, errors="strict")
    except (OSError, UnicodeError, ValueError, LookupError) as exc:
        LOGGER.debug("variable index unavailable for %s: %s", path, exc)
        return index

    for line_number, line in enumerate(content.split("\n"), start=1):
        match = SET_ASSIGNMENT_PATTERN.search(line)
        if not match:
            continue
        index.record(
            match.group("name"),
            DefinitionRecord(file=file_key, line=line_number, value=match.group("value").strip()),
        )
    return index


__all__ = ["SET_ASSIGNMENT_PATTERN", "VariableIndex", "build_variable_index"]
