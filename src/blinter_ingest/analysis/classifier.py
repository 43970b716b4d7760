# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Classification of streamed Blinter output into enriched issues.

Each streamed line is matched against the detailed header, the bracketed
single-line form and the ``file:line: severity: message`` form, in that
order. Matching lines become :class:`~blinter_ingest.core.models.Issue`
instances carrying a semantic :class:`Classification`, a criticality flag,
a resolved absolute path and, for undefined variables, a trace of prior
assignments taken from the run's :class:`VariableIndex`.

Classification is a pure function of the message and severity: an ordered
table of :class:`ClassificationRule` entries is evaluated top to bottom and
the first match wins. The final rule matches everything, so the mapping is
total.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Final

from ..core.models import CharRange, Classification, DefinitionRecord, Issue, RawFinding
from ..core.severity import Severity, is_informational, normalize_severity, severity_from_code
from ..filesystem.paths import normalize_path_key
from ..parsers.base import coerce_line_number
from .variables import VariableIndex

ERROR_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<file>.+?):(?P<line>\d++):\s*+(?P<severity>error|warning|info)\s*:?\s*(?P<message>.+)$",
    re.IGNORECASE,
)
BRACKETED_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*+\[(?P<severity>info|warn|warning|error|fatal)\]\s*+\((?P<code>[^)]++)\)\s*+->\s*+"
    r"(?P<message>.*?\S)(?:\s++on\s++line\s++(?P<line>\d++))?\s*+$",
    re.IGNORECASE,
)
DETAILED_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*+Line\s++(?P<line>\d++):\s++(?P<message>.*?\S)\s*+\((?P<code>[A-Za-z0-9_+-]++)\)\s*+$",
    re.IGNORECASE,
)
UNDEFINED_VARIABLE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"undefined\s+variable\s+'?(?P<name>[A-Za-z0-9_]+)'?",
    re.IGNORECASE,
)
STREAMED_SET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*(?:setlocal\b.*|set\s+(?P<name>[A-Za-z0-9_]+)\s*=\s*(?P<value>.*))$",
    re.IGNORECASE,
)

CRITICAL_KEYWORDS: Final[tuple[str, ...]] = (
    "undefined variable",
    "unreachable",
    "bad label",
    "invalid label",
    "infinite loop",
    "empty label",
    "syntax error",
    "deprecated",
    "duplicate label",
    "stupid",
)


class Criticality(str, Enum):
    """How a rule derives ``is_critical`` from the finding severity."""

    ALWAYS = "always"
    NEVER = "never"
    UNLESS_INFORMATIONAL = "unless-informational"

    def resolve(self, informational: bool) -> bool:
        """Return the critical flag for a finding of the given severity class."""
        if self is Criticality.ALWAYS:
            return True
        if self is Criticality.NEVER:
            return False
        return not informational


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """Map message keywords (and optionally severity) onto a classification.

    Attributes:
        classification: Category assigned when the rule matches.
        criticality: Strategy used to derive the critical flag.
        keywords: Lower-case substrings; any hit matches. Empty matches all.
        informational_only: Restrict the rule to informational findings.
    """

    classification: Classification
    criticality: Criticality
    keywords: tuple[str, ...] = ()
    informational_only: bool = False

    def matches(self, text: str, *, informational: bool) -> bool:
        """Return ``True`` when lower-cased ``text`` satisfies the rule."""
        if self.informational_only and not informational:
            return False
        return not self.keywords or any(keyword in text for keyword in self.keywords)


CLASSIFICATION_RULES: Final[tuple[ClassificationRule, ...]] = (
    ClassificationRule(Classification.UNDEFINED_VARIABLE, Criticality.ALWAYS, ("undefined variable",)),
    ClassificationRule(Classification.POSSIBLE_INFINITE_LOOP, Criticality.ALWAYS, ("infinite loop",)),
    ClassificationRule(
        Classification.BAD_LABEL,
        Criticality.ALWAYS,
        ("bad label", "invalid label", "duplicate label", "empty label"),
    ),
    ClassificationRule(Classification.SYNTAX_WARNING, Criticality.ALWAYS, ("syntax",)),
    ClassificationRule(Classification.DEPRECATED, Criticality.UNLESS_INFORMATIONAL, ("deprecated",)),
    ClassificationRule(Classification.HEURISTIC, Criticality.ALWAYS, CRITICAL_KEYWORDS),
    ClassificationRule(Classification.INFO, Criticality.NEVER, informational_only=True),
    ClassificationRule(Classification.GENERAL, Criticality.ALWAYS),
)


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Outcome of :func:`classify_message`."""

    classification: Classification
    is_critical: bool


def classify_message(
    message: str | None,
    severity: Severity | str | None,
    code: str | None = None,
) -> ClassificationResult:
    """Classify ``message`` using :data:`CLASSIFICATION_RULES`.

    Args:
        message: Diagnostic text; matched case-insensitively.
        severity: Finding severity or severity label.
        code: Rule code; accepted for signature symmetry, not consulted.

    Returns:
        ClassificationResult: Classification and critical flag.
    """
    del code
    informational = is_informational(severity)
    text = (message or "").lower()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(text, informational=informational):
            return ClassificationResult(rule.classification, rule.criticality.resolve(informational))
    # Unreachable: the final rule matches every message.
    return ClassificationResult(Classification.GENERAL, True)


def resolve_issue_path(
    file_text: str | None,
    *,
    workspace_root: str | Path | None = None,
    default_file: str | Path | None = None,
) -> str | None:
    """Resolve the file a finding refers to.

    An absolute path wins outright. Relative text is joined against
    ``workspace_root``, then the directory of ``default_file``, then the
    current working directory. Empty text falls back to ``default_file``.

    Returns:
        str | None: Normalised absolute path, or ``None`` when nothing can be resolved.
    """
    trimmed = (file_text or "").strip()
    if not trimmed:
        return normalize_path_key(default_file) if default_file else None
    if os.path.isabs(trimmed):
        return normalize_path_key(trimmed)
    if workspace_root:
        return normalize_path_key(trimmed, base_dir=workspace_root)
    if default_file:
        return normalize_path_key(trimmed, base_dir=os.path.dirname(os.fspath(default_file)) or None)
    return normalize_path_key(trimmed)


def format_definition(record: DefinitionRecord) -> str:
    """Render ``record`` as ``"<basename> line <N> = <value>"``, skipping missing parts."""
    parts: list[str] = []
    if record.file:
        parts.append(os.path.basename(record.file))
    if record.line is not None:
        parts.append(f"line {record.line}")
    if record.value:
        parts.append(f"= {record.value}")
    return " ".join(parts)


def build_variable_trace(name: str | None, index: VariableIndex | None) -> tuple[str, ...] | None:
    """Return the human-readable assignment history for ``name``.

    Returns:
        tuple[str, ...] | None: Trace entries in index order, or ``None`` when
        the variable has no recorded assignments.
    """
    if not name or index is None:
        return None
    trace = tuple(entry for entry in (format_definition(record) for record in index.lookup(name)) if entry)
    return trace or None


def extract_variable_name(message: str | None) -> str | None:
    """Return the upper-cased variable named by an undefined-variable message."""
    match = UNDEFINED_VARIABLE_PATTERN.search(message or "")
    return match.group("name").upper() if match else None


def create_issue(
    *,
    severity: Severity | str | None,
    message: str,
    file_path: str | None,
    line_number: int,
    code: str | None = None,
    variable_index: VariableIndex | None = None,
) -> Issue:
    """Build a classified :class:`Issue` enriched with variable traces.

    Args:
        severity: Severity or label reported for the finding.
        message: Diagnostic text, possibly multi-line.
        file_path: Resolved absolute path of the target file.
        line_number: 1-based line; values below 1 are clamped.
        code: Optional rule code.
        variable_index: Live index consulted for undefined-variable traces.

    Returns:
        Issue: Fully classified issue with a fresh identifier.
    """
    normalized_severity = normalize_severity(severity)
    safe_message = message.strip() if isinstance(message, str) else ""
    if not safe_message:
        safe_message = code or "Unspecified Blinter finding"
    result = classify_message(safe_message, normalized_severity, code)
    line = max(1, line_number)

    variable_name = extract_variable_name(safe_message)
    variable_trace = build_variable_trace(variable_name, variable_index)
    if result.classification is not Classification.UNDEFINED_VARIABLE:
        variable_name = None
        variable_trace = None

    return Issue(
        severity=normalized_severity,
        classification=result.classification,
        is_critical=result.is_critical,
        message=safe_message,
        code=code or None,
        file_path=file_path,
        line=line,
        range=CharRange.whole_line(line),
        variable_name=variable_name,
        variable_trace=variable_trace,
    )


@dataclass(slots=True)
class LineContext:
    """Per-run inputs shared by every analysed line."""

    workspace_root: str | None = None
    default_file: str | None = None
    variable_index: VariableIndex | None = field(default=None)


@dataclass(frozen=True, slots=True)
class LineAnalysis:
    """Result of analysing one streamed line.

    Attributes:
        issues: Issues recognised on the line (zero or one).
        opens_block: ``True`` when the line is a detailed header whose
            dash-prefixed detail lines may follow.
    """

    issues: tuple[Issue, ...] = ()
    opens_block: bool = False


def _record_streamed_assignment(line: str, context: LineContext) -> None:
    if context.variable_index is None:
        return
    match = STREAMED_SET_PATTERN.match(line)
    if not match or not match.group("name"):
        return
    default_file = normalize_path_key(context.default_file) if context.default_file else None
    context.variable_index.record(
        match.group("name"),
        DefinitionRecord(file=default_file, line=None, value=(match.group("value") or "").strip()),
    )


def analyze_line(line: str, context: LineContext) -> LineAnalysis:
    """Analyse one streamed output line.

    A ``set NAME=VALUE`` line is recorded in the live variable index before
    matching so later lines of the same run can resolve its trace.

    Args:
        line: Raw line, with or without its trailing newline.
        context: Workspace root, default file and live variable index.

    Returns:
        LineAnalysis: Recognised issues and whether a detail block opened.
    """
    text = line.rstrip("\r\n").rstrip()
    _record_streamed_assignment(text, context)

    detailed = DETAILED_LINE_PATTERN.match(text)
    if detailed:
        code = detailed.group("code").strip()
        issue = create_issue(
            severity=severity_from_code(code),
            message=detailed.group("message"),
            code=code,
            file_path=_default_target(context),
            line_number=coerce_line_number(detailed.group("line")),
            variable_index=context.variable_index,
        )
        return LineAnalysis(issues=(issue,), opens_block=True)

    bracketed = BRACKETED_PATTERN.match(text)
    if bracketed:
        raw_line = bracketed.group("line")
        issue = create_issue(
            severity=bracketed.group("severity"),
            message=bracketed.group("message"),
            code=bracketed.group("code").strip(),
            file_path=_default_target(context),
            line_number=coerce_line_number(raw_line),
            variable_index=context.variable_index,
        )
        return LineAnalysis(issues=(issue,))

    general = ERROR_LINE_PATTERN.match(text)
    if general:
        issue = create_issue(
            severity=general.group("severity"),
            message=general.group("message"),
            file_path=resolve_issue_path(
                general.group("file"),
                workspace_root=context.workspace_root,
                default_file=context.default_file,
            ),
            line_number=coerce_line_number(general.group("line")),
            variable_index=context.variable_index,
        )
        return LineAnalysis(issues=(issue,))

    return LineAnalysis()


def issue_from_finding(finding: RawFinding, context: LineContext) -> Issue:
    """Classify a parser :class:`RawFinding` for the run described by ``context``."""
    return create_issue(
        severity=finding.severity,
        message=finding.description,
        code=finding.code,
        file_path=_default_target(context),
        line_number=finding.line,
        variable_index=context.variable_index,
    )


def _default_target(context: LineContext) -> str | None:
    default_file = context.default_file
    if not default_file:
        return None
    if os.path.isabs(default_file) or not context.workspace_root:
        return normalize_path_key(default_file)
    return normalize_path_key(default_file, base_dir=context.workspace_root)


__all__ = [
    "BRACKETED_PATTERN",
    "CLASSIFICATION_RULES",
    "CRITICAL_KEYWORDS",
    "Classification",
    "ClassificationResult",
    "ClassificationRule",
    "Criticality",
    "DETAILED_LINE_PATTERN",
    "ERROR_LINE_PATTERN",
    "LineAnalysis",
    "LineContext",
    "analyze_line",
    "build_variable_trace",
    "classify_message",
    "create_issue",
    "extract_variable_name",
    "format_definition",
    "issue_from_finding",
    "resolve_issue_path",
]
