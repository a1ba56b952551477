"""
Tests for the language server and LSP conversions.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json

import pytest
from pathlib import Path
from lsprotocol.types import DiagnosticSeverity as LspDiagnosticSeverity

from sv_style_checker.analysis.types import Diagnostic, DiagnosticSeverity, SuggestedFix
from sv_style_checker.lsp_data import (
    DIAGNOSTIC_SOURCE,
    LSPInitializationOptions,
    to_lsp_diagnostic,
    to_lsp_diagnostics,
    uri_to_path,
)
from sv_style_checker.server import SVStyleServer
from sv_style_checker.span import Position, Range, Span


URI = "file:///workspace/rtl/top.sv"

# module_naming at 1:8, signal_naming at 2:9, parse error at 3:3
SOURCE = "module MyModule;\n  logic BadName;\n  always_ff begin end\nendmodule\n"


@pytest.fixture
def server():
    return SVStyleServer()


class TestLintDocument:
    """Test linting of open documents."""

    def test_positions_are_zero_based(self, server):
        """LSP diagnostics are 0-based and carry the rule id as code."""
        diagnostics = server.lint_document(URI, SOURCE)
        assert [diagnostic.code for diagnostic in diagnostics] == [
            "module_naming", "signal_naming", "parse_error",
        ]
        first = diagnostics[0]
        assert (first.range.start.line, first.range.start.character) == (0, 7)
        assert first.source == DIAGNOSTIC_SOURCE
        assert first.severity == LspDiagnosticSeverity.Warning
        assert diagnostics[2].severity == LspDiagnosticSeverity.Error

    def test_max_diagnostics_per_file(self, server):
        """The per-file limit keeps the earliest diagnostics."""
        server.configure({"max_diagnostics_per_file": 1})
        diagnostics = server.lint_document(URI, SOURCE)
        assert [diagnostic.code for diagnostic in diagnostics] == ["module_naming"]

    def test_linting_disabled(self, server):
        """With linting disabled only lex and parse errors are published."""
        server.configure({"linting_enabled": False})
        diagnostics = server.lint_document(URI, SOURCE)
        assert [diagnostic.code for diagnostic in diagnostics] == ["parse_error"]

    def test_lint_config_from_initialization_options(self, server, tmp_path):
        """A lint configuration named in the options is applied."""
        config_file = tmp_path / "lint.json"
        config_file.write_text(json.dumps({"disabled_rules": ["module_naming"]}))
        server.configure({"lint_config_file": str(config_file)})
        codes = [diagnostic.code for diagnostic in server.lint_document(URI, SOURCE)]
        assert "module_naming" not in codes
        assert "signal_naming" in codes

    def test_bad_lint_config_is_logged(self, server, tmp_path, caplog):
        """A broken configuration is reported and the defaults stay in force."""
        config_file = tmp_path / "lint.json"
        config_file.write_text("[1, 2")
        server.configure({"lint_config_file": str(config_file)})
        assert "Could not apply initialization options" in caplog.text
        codes = [diagnostic.code for diagnostic in server.lint_document(URI, SOURCE)]
        assert "module_naming" in codes

    def test_untitled_document(self, server):
        """Documents without a file URI are linted too."""
        diagnostics = server.lint_document("untitled:Untitled-1", "module Bad;\nendmodule\n")
        assert [diagnostic.code for diagnostic in diagnostics] == ["module_naming"]

    def test_publish(self, server):
        """Open documents are linted and published; close clears them."""
        published = []
        server.publish_diagnostics = lambda uri, diagnostics: published.append((uri, diagnostics))
        server.open_documents[URI] = SOURCE
        server._publish(URI)
        assert len(published) == 1
        assert published[0][0] == URI
        assert len(published[0][1]) == 3

    def test_publish_failure_is_logged(self, server, caplog):
        """A crash while linting is logged and nothing is published."""
        published = []
        server.publish_diagnostics = lambda uri, diagnostics: published.append(uri)

        def explode(uri, content):
            raise RuntimeError("analysis crashed")

        server.lint_document = explode
        server.open_documents[URI] = SOURCE
        server._publish(URI)
        assert published == []
        assert "Error analyzing document" in caplog.text


class TestLspData:
    """Test conversions between internal and LSP types."""

    def test_fix_travels_in_data(self):
        """A suggested fix is attached as a text edit."""
        span = Span("a.sv", Range(Position(3, 5), Position(3, 6)))
        diagnostic = Diagnostic("assignment_discipline", DiagnosticSeverity.ERROR, span,
                                "use '<='", SuggestedFix(span, "<="))
        lsp_diagnostic = to_lsp_diagnostic(diagnostic)
        assert lsp_diagnostic.data == {
            'range': {'start': {'line': 2, 'character': 4}, 'end': {'line': 2, 'character': 5}},
            'newText': '<=',
        }
        assert lsp_diagnostic.code == "assignment_discipline"

    def test_to_lsp_diagnostics_sorts_and_limits(self):
        """Conversion orders diagnostics before applying the limit."""
        def make(line):
            span = Span("a.sv", Range(Position(line, 1), Position(line, 2)))
            return Diagnostic("no_tabs", DiagnosticSeverity.WARNING, span, "tab")

        converted = to_lsp_diagnostics([make(5), make(2), make(9)], limit=2)
        assert [diagnostic.range.start.line for diagnostic in converted] == [1, 4]
        assert len(to_lsp_diagnostics([make(1)], limit=None)) == 1

    def test_uri_conversion(self, tmp_path):
        """File URIs map to paths; other schemes are rejected."""
        path = (tmp_path / "dir with space" / "top.sv").resolve()
        assert uri_to_path(path.as_uri()) == path
        assert uri_to_path("file:///tmp/a%20b.sv") == Path("/tmp/a b.sv")
        with pytest.raises(ValueError):
            uri_to_path("https://example.com/top.sv")

    def test_initialization_options(self):
        """Missing initialization options fall back to defaults."""
        options = LSPInitializationOptions.from_dict(None)
        assert options.linting_enabled is True
        assert options.max_diagnostics_per_file == 100
        options = LSPInitializationOptions.from_dict({"best_effort": True, "log_level": "debug"})
        assert options.best_effort is True
        assert options.log_level == "debug"
