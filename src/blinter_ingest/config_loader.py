# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration loading for blinter-ingest.

Layers apply in order, later ones winning per key: built-in defaults, the
``[tool.blinter-ingest]`` table of ``pyproject.toml`` and finally
``.blinter-ingest.toml``. Either file may ``include`` further TOML tables,
which are merged beneath the including table. Keys may be written in
kebab-case (``debounce-ms``) and string values may reference environment
variables as ``$NAME`` or ``${NAME}``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any, Final

from pydantic import BaseModel, ValidationError

from .config import ConfigError, IngestConfig

LOGGER = logging.getLogger(__name__)

INCLUDE_KEY: Final[str] = "include"
PYPROJECT_TABLE: Final[tuple[str, ...]] = ("tool", "blinter-ingest")
PROJECT_CONFIG_NAME: Final[str] = ".blinter-ingest.toml"

_SECTION_KEYS: Final[frozenset[str]] = frozenset(
    name
    for name, field in IngestConfig.model_fields.items()
    if isinstance(field.annotation, type) and issubclass(field.annotation, BaseModel)
)


def _canonical_key(key: str) -> str:
    return key.strip().lower().replace("-", "_")


def _normalise_table(table: Mapping[str, Any]) -> dict[str, Any]:
    """Canonicalise keys one level into the known config sections."""
    result: dict[str, Any] = {}
    for key, value in table.items():
        canonical = _canonical_key(key)
        if canonical in _SECTION_KEYS and isinstance(value, Mapping):
            value = {_canonical_key(inner): entry for inner, entry in value.items()}
        result[canonical] = value
    return result


def _merge_layer(base: Mapping[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay ``layer`` on ``base``; section tables merge key by key."""
    merged = dict(base)
    for key, value in layer.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def _expand_env(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return Template(value).safe_substitute(env)
    if isinstance(value, Mapping):
        return {key: _expand_env(entry, env) for key, entry in value.items()}
    return value


@dataclass(frozen=True, slots=True)
class ConfigFile:
    """A TOML document holding a blinter-ingest table.

    Attributes:
        path: Location of the document.
        table: Key path to the blinter-ingest table; empty for the document root.
    """

    path: Path
    table: tuple[str, ...] = ()

    def read(self) -> dict[str, Any]:
        """Return the normalised table with its includes merged beneath it."""
        return self._read(self.path, self.table, ())

    def _read(self, path: Path, table: tuple[str, ...], stack: tuple[Path, ...]) -> dict[str, Any]:
        if not path.is_file():
            return {}
        if path in stack:
            chain = " -> ".join(str(entry) for entry in (*stack, path))
            raise ConfigError(f"Circular include detected: {chain}")
        try:
            with path.open("rb") as handle:
                document: Any = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Unable to read configuration at {path}: {exc}") from exc
        for key in table:
            document = document.get(key) if isinstance(document, Mapping) else None
        if not isinstance(document, Mapping):
            return {}

        section = _normalise_table(document)
        merged: dict[str, Any] = {}
        for include in self._includes(section.pop(INCLUDE_KEY, None), path):
            merged = _merge_layer(merged, self._read(include, (), (*stack, path)))
        LOGGER.debug("loaded configuration layer from %s", path)
        return _merge_layer(merged, section)

    @staticmethod
    def _includes(raw: Any, origin: Path) -> list[Path]:
        if raw is None:
            return []
        entries = [raw] if isinstance(raw, str) else raw
        if not isinstance(entries, list) or not all(isinstance(entry, str) for entry in entries):
            raise ConfigError(f"{origin}: '{INCLUDE_KEY}' must be a path or a list of paths")
        return [origin.parent / Path(entry).expanduser() for entry in entries]


def config_files(project_root: Path) -> tuple[ConfigFile, ...]:
    """Return the configuration documents consulted for ``project_root``, lowest precedence first."""
    return (
        ConfigFile(project_root / "pyproject.toml", PYPROJECT_TABLE),
        ConfigFile(project_root / PROJECT_CONFIG_NAME),
    )


def load_config(project_root: Path, *, env: Mapping[str, str] | None = None) -> IngestConfig:
    """Return the effective configuration for ``project_root``.

    A relative ``workspace_root`` is anchored at ``project_root``.

    Raises:
        ConfigError: When a document cannot be read or the merged data is invalid.
    """
    merged: dict[str, Any] = IngestConfig().to_dict()
    for config_file in config_files(project_root):
        merged = _merge_layer(merged, config_file.read())
    merged = _expand_env(merged, os.environ if env is None else env)
    try:
        config = IngestConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid blinter-ingest configuration: {exc}") from exc
    if config.workspace_root is not None and not config.workspace_root.is_absolute():
        config = config.model_copy(update={"workspace_root": project_root / config.workspace_root})
    return config


__all__ = [
    "ConfigFile",
    "INCLUDE_KEY",
    "PROJECT_CONFIG_NAME",
    "PYPROJECT_TABLE",
    "config_files",
    "load_config",
]
