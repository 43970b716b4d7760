# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for the Blinter ingestion pipeline."""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import Final, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DEBOUNCE_MS: Final[int] = 75
DEFAULT_MAX_CARRY_CHARS: Final[int] = 1024 * 1024
DEFAULT_STDERR_TAIL_LINES: Final[int] = 20


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class StoreConfig(BaseModel):
    """Timing knobs for the issue store."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    debounce_ms: int = Field(default=DEFAULT_DEBOUNCE_MS, ge=0)
    max_run_seconds: float | None = Field(default=None, gt=0)

    @property
    def debounce_seconds(self) -> float:
        """Return the coalescing window in seconds."""
        return self.debounce_ms / 1000.0


class StreamConfig(BaseModel):
    """How raw process output is decoded and buffered."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    encoding: str = "utf-8"
    max_carry_chars: int = Field(default=DEFAULT_MAX_CARRY_CHARS, ge=1)
    stderr_tail_lines: int = Field(default=DEFAULT_STDERR_TAIL_LINES, ge=0)

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding '{value}'") from exc
        return value


class OutputConfig(BaseModel):
    """Console presentation preferences for the CLI."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    output: Literal["concise", "json"] = "concise"
    emoji: bool = True
    color: bool = True
    verbose: bool = False


class IngestConfig(BaseModel):
    """Top-level configuration for an ingestion session."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    workspace_root: Path | None = None
    store: StoreConfig = Field(default_factory=StoreConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-compatible snapshot of the configuration."""
        return dict(self.model_dump(mode="json"))


__all__ = [
    "ConfigError",
    "DEFAULT_DEBOUNCE_MS",
    "IngestConfig",
    "OutputConfig",
    "StoreConfig",
    "StreamConfig",
]
