"""
Shared result and error types for (System)Verilog analysis.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..span import Span


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"

    @property
    def rank(self) -> int:
        return 0 if self is DiagnosticSeverity.ERROR else 1


@dataclass(frozen=True)
class SuggestedFix:
    """A replacement for the text covered by span. Never applied automatically."""
    span: Span
    replacement: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'line': self.span.start.line,
            'column': self.span.start.column,
            'end_line': self.span.end.line,
            'end_column': self.span.end.column,
            'replacement': self.replacement,
        }


@dataclass(frozen=True)
class Diagnostic:
    """A single finding reported against a source location."""
    rule_id: str
    severity: DiagnosticSeverity
    span: Span
    message: str
    fix: Optional[SuggestedFix] = None

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    @property
    def file_path(self) -> Optional[str]:
        return self.span.file_path

    @property
    def sort_key(self):
        return (self.line, self.column, self.rule_id)

    @property
    def identity(self):
        """Two diagnostics with the same identity are duplicates."""
        return (self.file_path, self.line, self.column, self.rule_id)

    def format(self) -> str:
        """Human-readable single line, compiler style."""
        location = f"{self.file_path}:" if self.file_path else ""
        return (f"{location}{self.line}:{self.column}: {self.severity.value}: "
                f"{self.message} [{self.rule_id}]")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable record."""
        data = {
            'file': self.file_path,
            'rule_id': self.rule_id,
            'severity': self.severity.value,
            'line': self.line,
            'column': self.column,
            'message': self.message,
        }
        if self.fix is not None:
            data['fix'] = self.fix.to_dict()
        return data


class AnalysisError(Exception):
    """Base class for failures located in source text."""

    rule_id = "analysis_error"

    def __init__(self, message: str, span: Span):
        super().__init__(f"{span}: {message}")
        self.message = message
        self.span = span

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    def to_diagnostic(self) -> Diagnostic:
        """Convert to diagnostic."""
        return Diagnostic(
            rule_id=self.rule_id,
            severity=DiagnosticSeverity.ERROR,
            span=self.span,
            message=self.message,
        )


class LexError(AnalysisError):
    """Raised when source text cannot be tokenized."""

    rule_id = "lex_error"


class ParseError(AnalysisError):
    """Raised when a recognized construct is structurally incomplete."""

    rule_id = "parse_error"


__all__ = [
    "DiagnosticSeverity",
    "SuggestedFix",
    "Diagnostic",
    "AnalysisError",
    "LexError",
    "ParseError",
]
