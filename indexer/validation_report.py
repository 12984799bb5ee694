"""Validation issues and reports shared by the content and index validators."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class IssueKind(str, Enum):
    """Categories of validation issues."""
    FORMAT = "FormatError"
    SCHEMA = "SchemaError"
    CONSISTENCY = "ConsistencyError"
    PARSE = "ParseError"
    CONTENT = "ContentWarning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation finding with context."""

    kind: IssueKind
    message: str
    source: Optional[str] = None
    field: Optional[str] = None
    severity: str = "error"  # error, warning
    suggestion: Optional[str] = None
    code: Optional[str] = None

    def __str__(self) -> str:
        location = ""
        if self.source:
            location += f"{self.source}: "
        if self.field:
            location += f"{self.field}: "
        result = f"[{self.kind.value}] {location}{self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity,
            "source": self.source,
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
            "code": self.code,
        }


@dataclass
class ValidationReport:
    """Errors and warnings collected by one validation run.

    Issues keep the order they were found in, so two runs over the same input
    produce equal reports.
    """

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, issue: ValidationIssue) -> None:
        """Add an issue to the list matching its severity."""
        if issue.severity == "error":
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def error(self, kind: IssueKind, message: str, **context) -> None:
        self.add(ValidationIssue(kind=kind, message=message, severity="error", **context))

    def warn(self, kind: IssueKind, message: str, **context) -> None:
        self.add(ValidationIssue(kind=kind, message=message, severity="warning", **context))

    def extend(self, other: 'ValidationReport') -> None:
        """Append every issue of another report."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def errors_of(self, kind: IssueKind) -> List[ValidationIssue]:
        return [e for e in self.errors if e.kind == kind]

    def format_report(self, title: str = "Validation") -> str:
        """Format a human-readable, itemized report."""
        lines = []
        if self.ok:
            lines.append(f"✅ {title} PASSED")
        else:
            lines.append(f"❌ {title} FAILED")
        lines.append(f"Errors: {len(self.errors)}, Warnings: {len(self.warnings)}")

        if self.errors:
            lines.append("")
            lines.append(f"Found {len(self.errors)} error(s):")
            for issue in self.errors:
                lines.append(f"  • {issue}")
        if self.warnings:
            lines.append("")
            lines.append(f"Found {len(self.warnings)} warning(s):")
            for issue in self.warnings:
                lines.append(f"  • {issue}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.ok,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }
