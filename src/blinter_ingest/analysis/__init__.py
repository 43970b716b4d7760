# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Classification and variable-trace analysis for Blinter findings."""

from __future__ import annotations

from .classifier import (
    CLASSIFICATION_RULES,
    ClassificationResult,
    LineAnalysis,
    LineContext,
    analyze_line,
    build_variable_trace,
    classify_message,
    create_issue,
    issue_from_finding,
    resolve_issue_path,
)
from .variables import VariableIndex, build_variable_index

__all__ = [
    "CLASSIFICATION_RULES",
    "ClassificationResult",
    "LineAnalysis",
    "LineContext",
    "VariableIndex",
    "analyze_line",
    "build_variable_index",
    "build_variable_trace",
    "classify_message",
    "create_issue",
    "issue_from_finding",
    "resolve_issue_path",
]
