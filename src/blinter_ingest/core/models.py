# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the blinter_ingest package."""

from __future__ import annotations

import itertools
from enum import Enum
from threading import Lock
from typing import Final, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .severity import Severity, normalize_severity

MAX_COLUMN: Final[int] = 2**53 - 1

_ID_LOCK = Lock()
_ID_COUNTER = itertools.count(1)


def next_issue_id() -> str:
    """Return a fresh, never reused issue identifier."""
    with _ID_LOCK:
        return f"issue-{next(_ID_COUNTER)}"


class Classification(str, Enum):
    """Semantic categories assigned to a finding."""

    UNDEFINED_VARIABLE = "UndefinedVariable"
    POSSIBLE_INFINITE_LOOP = "PossibleInfiniteLoop"
    BAD_LABEL = "BadLabel"
    SYNTAX_WARNING = "SyntaxWarning"
    DEPRECATED = "Deprecated"
    HEURISTIC = "Heuristic"
    INFO = "Info"
    GENERAL = "General"
    LINTER = "Linter"


class CharRange(BaseModel):
    """Half-open character span on a single zero-based line."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    start: int = Field(default=0, ge=0)
    end: int = Field(default=MAX_COLUMN, ge=0)

    @classmethod
    def whole_line(cls, line_number: int) -> CharRange:
        """Return a range covering the full text of 1-based ``line_number``."""
        return cls(line=max(1, line_number) - 1, start=0, end=MAX_COLUMN)


class RawFinding(BaseModel):
    """Intermediate record produced by the output parser."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    code: str = Field(min_length=1)
    description: str
    line: int = Field(ge=1)
    dialect: Literal["legacy", "detailed"] = "legacy"


class Issue(BaseModel):
    """Classified diagnostic ready for storage and presentation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=next_issue_id)
    severity: Severity
    classification: Classification
    is_critical: bool
    message: str = Field(min_length=1)
    code: str | None = None
    file_path: str | None = None
    line: int = Field(default=1, ge=1)
    range: CharRange
    variable_name: str | None = None
    variable_trace: tuple[str, ...] | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value: object) -> Severity:
        return normalize_severity(value if isinstance(value, (Severity, str)) else None)


class DefinitionRecord(BaseModel):
    """One observed ``set NAME=VALUE`` assignment."""

    model_config = ConfigDict(frozen=True)

    file: str | None = None
    line: int | None = None
    value: str = ""


class RunState(str, Enum):
    """Coarse lifecycle state surfaced to renderers."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERRORED = "errored"


class RunStatus(BaseModel):
    """Run status snapshot for a single file."""

    model_config = ConfigDict(frozen=True)

    state: RunState = RunState.IDLE
    detail: str = ""
    run_id: int = 0
    exit_code: int | None = None
    issue_count: int = 0


__all__ = [
    "CharRange",
    "Classification",
    "DefinitionRecord",
    "Issue",
    "MAX_COLUMN",
    "RawFinding",
    "RunState",
    "RunStatus",
    "next_issue_id",
]
