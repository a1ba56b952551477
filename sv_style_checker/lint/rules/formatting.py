"""
Token-level formatting rules: line length, tabs, trailing whitespace and indentation.

These rules look only at the token slice owned by the tree they are given, so a file
split into several module trees still reports each line once.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List, Sequence, Set, Tuple

from ...analysis.parsing.lexer import Token, TokenKind
from ...analysis.structure import SourceFile
from ...analysis.types import Diagnostic, SuggestedFix
from ...span import Position, Range, Span
from .base import LintRule


def owned_lines(tree: SourceFile, tokens: Sequence[Token]) -> List[Tuple[int, str]]:
    """(line number, text) of every line that starts inside the tree's token slice."""
    owned = tokens[tree.token_start:tree.token_end]
    if not owned:
        return []
    pieces = ''.join(token.text for token in owned).split('\n')
    first_line = owned[0].line
    lines = []
    for offset, text in enumerate(pieces):
        if offset == 0 and owned[0].column != 1:
            # The line began in the previous tree
            continue
        if offset == len(pieces) - 1 and not text:
            continue
        lines.append((first_line + offset, text.rstrip('\r')))
    return lines


def _line_span(tree: SourceFile, line: int, start: int, end: int) -> Span:
    return Span(tree.file_path, Range(Position(line, start), Position(line, max(start, end))))


class LongLinesRule(LintRule):
    """Check for lines exceeding maximum length."""

    def __init__(self, max_length: int = 100):
        super().__init__(
            name="long_lines",
            description="Line length is above the threshold",
        )
        self.max_length = max_length

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for line, text in owned_lines(tree, tokens):
            if len(text) > self.max_length:
                diagnostics.append(self._diagnostic(
                    _line_span(tree, line, self.max_length + 1, len(text) + 1),
                    f"Line is {len(text)} characters long; the limit is {self.max_length}",
                ))
        return diagnostics


class NoTabsRule(LintRule):
    """Tabs are not used for spacing; tabs inside comments and strings are left alone."""

    def __init__(self):
        super().__init__(
            name="no_tabs",
            description="Use spaces instead of tab characters",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for token in tokens[tree.token_start:tree.token_end]:
            if token.kind is TokenKind.WHITESPACE and '\t' in token.text:
                column = token.column + token.text.index('\t')
                diagnostics.append(self._diagnostic(
                    _line_span(tree, token.line, column, column + 1),
                    "Tab character; use spaces",
                ))
        return diagnostics


class TrailingWhitespaceRule(LintRule):
    """Check for trailing whitespace on lines."""

    def __init__(self):
        super().__init__(
            name="trailing_whitespace",
            description="Found trailing whitespace on row",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for index in range(tree.token_start, min(tree.token_end, len(tokens))):
            token = tokens[index]
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if following is not None and following.kind not in (TokenKind.NEWLINE, TokenKind.EOF):
                continue

            if token.kind is TokenKind.WHITESPACE:
                span = token.span
            elif token.kind is TokenKind.COMMENT and '\n' not in token.text \
                    and token.text != token.text.rstrip(' \t'):
                kept = len(token.text.rstrip(' \t'))
                span = _line_span(tree, token.line, token.column + kept,
                                  token.column + len(token.text))
            else:
                continue
            diagnostics.append(self._diagnostic(
                span,
                "Found trailing whitespace on row",
                SuggestedFix(span, ''),
            ))
        return diagnostics


class IndentationRule(LintRule):
    """Check for consistent indentation."""

    def __init__(self, indent_size: int = 2):
        super().__init__(
            name="indentation",
            description="Inconsistent indentation",
            enabled=False,
        )
        self.indent_size = indent_size

    @staticmethod
    def _comment_continuations(tree: SourceFile, tokens: Sequence[Token]) -> Set[int]:
        lines: Set[int] = set()
        for token in tokens[tree.token_start:tree.token_end]:
            if token.kind is TokenKind.COMMENT and '\n' in token.text:
                lines.update(range(token.line + 1, token.end.line + 1))
        return lines

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        skipped = self._comment_continuations(tree, tokens)
        for line, text in owned_lines(tree, tokens):
            content = text.lstrip(' ')
            if line in skipped or not content.strip() or content.startswith('\t'):
                continue
            leading = len(text) - len(content)
            if leading % self.indent_size != 0:
                diagnostics.append(self._diagnostic(
                    _line_span(tree, line, 1, leading + 1),
                    f"Indentation should be a multiple of {self.indent_size} spaces",
                ))
        return diagnostics


__all__ = [
    'owned_lines',
    'LongLinesRule',
    'NoTabsRule',
    'TrailingWhitespaceRule',
    'IndentationRule',
]
