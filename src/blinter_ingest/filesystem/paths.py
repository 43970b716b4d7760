# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for reasoning about filesystem paths."""

from __future__ import annotations

import os
from os import PathLike
from pathlib import Path

_Pathish = str | PathLike[str] | Path


def normalize_path(path: _Pathish, *, base_dir: _Pathish | None = None) -> Path:
    """Return ``path`` as a normalised absolute path.

    Symlinks are left untouched; only ``.``/``..`` segments and duplicate
    separators are collapsed so keys stay stable for the same textual input.

    Args:
        path: Filesystem path supplied by the caller.
        base_dir: Directory used to anchor relative paths. Defaults to
            ``Path.cwd()`` when omitted.

    Returns:
        Path: Absolute, normalised path.

    Raises:
        ValueError: If ``path`` is ``None``.
    """
    if path is None:
        raise ValueError("path must not be None")

    raw_path = Path(path).expanduser()
    if not raw_path.is_absolute():
        base = Path.cwd() if base_dir is None else Path(base_dir).expanduser()
        raw_path = base / raw_path
    return Path(os.path.normpath(os.path.abspath(raw_path)))


def normalize_path_key(path: _Pathish, *, base_dir: _Pathish | None = None) -> str:
    """Return the string key used to index per-file state for ``path``.

    Args:
        path: Path for which to build the key.
        base_dir: Optional base directory used for relative inputs.

    Returns:
        str: Normalised absolute path rendered with native separators.
    """
    return str(normalize_path(path, base_dir=base_dir))


__all__ = ["normalize_path", "normalize_path_key"]
