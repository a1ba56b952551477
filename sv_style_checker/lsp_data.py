"""
LSP data conversions for the (System)Verilog style checker.

Diagnostics are located with 1-based positions internally; LSP positions are
0-based, so every conversion goes through span_to_lsp_range.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import Dict, List, Optional, Any
from dataclasses import dataclass
from pathlib import Path
import urllib.parse

from lsprotocol.types import (
    Position as LspPosition,
    Range as LspRange,
    Diagnostic as LspDiagnostic,
    DiagnosticSeverity as LspDiagnosticSeverity,
    TextEdit as LspTextEdit,
)

from .analysis.types import Diagnostic, DiagnosticSeverity, SuggestedFix
from .span import Position, Span

DIAGNOSTIC_SOURCE = "sv-style-checker"

SEVERITY_MAP = {
    DiagnosticSeverity.ERROR: LspDiagnosticSeverity.Error,
    DiagnosticSeverity.WARNING: LspDiagnosticSeverity.Warning,
}


def position_to_lsp(position: Position) -> LspPosition:
    """Convert a 1-based position to an LSP position."""
    line, character = position.to_zero_based()
    return LspPosition(line=line, character=character)


def span_to_lsp_range(span: Span) -> LspRange:
    """Convert a span to an LSP range."""
    return LspRange(start=position_to_lsp(span.start), end=position_to_lsp(span.end))

def fix_to_lsp_text_edit(fix: SuggestedFix) -> LspTextEdit:
    """Convert a suggested fix to an LSP text edit."""
    return LspTextEdit(range=span_to_lsp_range(fix.span), new_text=fix.replacement)


def to_lsp_diagnostic(diagnostic: Diagnostic) -> LspDiagnostic:
    """
    Convert a diagnostic to its LSP form.

    A suggested fix travels in the data field as a text edit so that clients can
    offer it; the checker itself never applies it.
    """
    data = None
    if diagnostic.fix is not None:
        edit = fix_to_lsp_text_edit(diagnostic.fix)
        data = {
            'range': {
                'start': {'line': edit.range.start.line, 'character': edit.range.start.character},
                'end': {'line': edit.range.end.line, 'character': edit.range.end.character},
            },
            'newText': edit.new_text,
        }

    return LspDiagnostic(
        range=span_to_lsp_range(diagnostic.span),
        message=diagnostic.message,
        severity=SEVERITY_MAP[diagnostic.severity],
        code=diagnostic.rule_id,
        source=DIAGNOSTIC_SOURCE,
        data=data,
    )


def to_lsp_diagnostics(diagnostics: List[Diagnostic],
                       limit: Optional[int] = None) -> List[LspDiagnostic]:
    """Convert diagnostics in (line, column, rule id) order, keeping at most limit."""
    ordered = sorted(diagnostics, key=lambda diagnostic: diagnostic.sort_key)
    if limit is not None and limit >= 0:
        ordered = ordered[:limit]
    return [to_lsp_diagnostic(diagnostic) for diagnostic in ordered]

def uri_to_path(uri: str) -> Path:
    """Convert a URI to a file path."""
    parsed = urllib.parse.urlparse(uri)
    if parsed.scheme != 'file':
        raise ValueError(f"Only file URIs are supported, got: {uri}")
    return Path(urllib.parse.unquote(parsed.path))


# Supported initialization options
@dataclass
class LSPInitializationOptions:
    """Initialization options for the LSP server."""
    linting_enabled: bool = True
    lint_config_file: Optional[str] = None
    max_diagnostics_per_file: int = 100
    best_effort: bool = False
    log_level: str = "info"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LSPInitializationOptions':
        """Create from initialization options dictionary."""
        if data is None:
            return cls()

        return cls(
            linting_enabled=data.get('linting_enabled', True),
            lint_config_file=data.get('lint_config_file'),
            max_diagnostics_per_file=data.get('max_diagnostics_per_file', 100),
            best_effort=data.get('best_effort', False),
            log_level=data.get('log_level', 'info')
        )
