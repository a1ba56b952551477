"""
Column alignment of consecutive declarations.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from collections import Counter
from typing import Dict, List, NamedTuple, Optional, Sequence

from ...analysis.parsing.lexer import Token
from ...analysis.structure import SignalDeclaration, SourceFile
from ...analysis.types import Diagnostic, SuggestedFix
from ...span import Position, Range, Span
from .base import LintRule


class _Column(NamedTuple):
    declaration: SignalDeclaration
    what: str
    start: Position
    previous: Token

    @property
    def actual(self) -> int:
        return self.start.column

    @property
    def minimum(self) -> int:
        """Column reached with a single space after the preceding token."""
        return self.previous.end.column + 1


class DeclarationAlignmentRule(LintRule):
    """
    Consecutive declarations line up their names.

    A run is a group of declarations on consecutive lines sharing the same base type;
    ANSI header ports form one run regardless of type, leaving out ports on the line of
    the opening parenthesis. Within a run the names must start at one column, and so
    must the packed dimensions and, for ports, the data types. The expected column is
    the one most lines already use among those every line could reach; each misaligned
    line gets a single diagnostic.
    """

    def __init__(self):
        super().__init__(
            name="declaration_alignment",
            description="Names of consecutive declarations must be column-aligned",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        if tree.module is None:
            return []
        index = {token.span.start: position for position, token in enumerate(tokens)
                 if not token.is_trivia}
        diagnostics = []
        for run, is_header in self._runs(tree, tokens, index):
            diagnostics.extend(self._check_run(run, is_header, tokens, index))
        return diagnostics

    @staticmethod
    def _one_per_line(declarations: List[SignalDeclaration]) -> List[SignalDeclaration]:
        result: List[SignalDeclaration] = []
        for declaration in sorted(declarations, key=lambda d: d.name_span.start):
            if declaration.span.range.is_multiline:
                continue
            if result and result[-1].name_span.line == declaration.name_span.line:
                continue
            result.append(declaration)
        return result

    def _runs(self, tree: SourceFile, tokens: Sequence[Token], index: Dict[Position, int]):
        module = tree.module
        runs = []
        body = [declaration for declaration in module.declarations
                if declaration.first_in_statement and not declaration.kind.is_parameter]
        if module.ansi_ports:
            # Ports sharing a line with the opening parenthesis have no column to match
            opening = {port.name_span.line for port in module.ports
                       if self._follows_open_paren(port, tokens, index)}
            header = self._one_per_line([port for port in module.ports
                                         if port.name_span.line not in opening])
            if len(header) > 1:
                runs.append((header, True))
        else:
            body.extend(port for port in module.ports if port.first_in_statement)

        run: List[SignalDeclaration] = []
        for declaration in self._one_per_line(body):
            if run and declaration.span.start.line == run[-1].span.end.line + 1 \
                    and declaration.type_keyword == run[-1].type_keyword:
                run.append(declaration)
                continue
            if len(run) > 1:
                runs.append((run, False))
            run = [declaration]
        if len(run) > 1:
            runs.append((run, False))
        return runs

    @staticmethod
    def _previous_token(start: Position, tokens: Sequence[Token],
                        index: Dict[Position, int]) -> Optional[Token]:
        """The significant token before start, when it sits on the same line."""
        position = index.get(start)
        if position is None:
            return None
        position -= 1
        while position >= 0 and tokens[position].is_trivia:
            position -= 1
        if position < 0 or tokens[position].end.line != start.line:
            return None
        return tokens[position]

    @classmethod
    def _follows_open_paren(cls, port: SignalDeclaration, tokens: Sequence[Token],
                            index: Dict[Position, int]) -> bool:
        previous = cls._previous_token(port.span.start, tokens, index)
        return previous is not None and previous.is_op('(')

    def _columns(self, run: List[SignalDeclaration], what: str, is_header: bool,
                 tokens: Sequence[Token], index: Dict[Position, int]) -> List[_Column]:
        columns = []
        for declaration in run:
            if what == 'name':
                start = declaration.name_span.start
            elif what == 'type':
                if not is_header or declaration.type_span is None:
                    continue
                start = declaration.type_span.start
            else:
                if not declaration.packed_dimensions:
                    continue
                start = declaration.packed_dimensions[0].span.start
            if start.line != declaration.name_span.line:
                continue
            previous = self._previous_token(start, tokens, index)
            if previous is not None:
                columns.append(_Column(declaration, what, start, previous))
        return columns

    @staticmethod
    def _target(columns: List[_Column]) -> int:
        floor = max(column.minimum for column in columns)
        counts = Counter(column.actual for column in columns if column.actual >= floor)
        if not counts:
            return floor
        most = max(counts.values())
        return min(actual for actual, count in counts.items() if count == most)

    def _check_run(self, run: List[SignalDeclaration], is_header: bool, tokens: Sequence[Token],
                   index: Dict[Position, int]) -> List[Diagnostic]:
        misaligned: Dict[int, Diagnostic] = {}
        # Left to right, so each line reports its leftmost misaligned column
        for what in ('type', 'dimension', 'name'):
            columns = self._columns(run, what, is_header, tokens, index)
            if len(columns) < 2:
                continue
            target = self._target(columns)
            for column in columns:
                line = column.start.line
                if column.actual == target or line in misaligned:
                    continue
                gap = Span(column.declaration.name_span.file_path,
                           Range(column.previous.end, column.start))
                fix = SuggestedFix(gap, ' ' * (target - column.previous.end.column))
                misaligned[line] = self._diagnostic(
                    column.declaration.name_span,
                    self._message(column, target),
                    fix,
                )
        return [misaligned[line] for line in sorted(misaligned)]

    @staticmethod
    def _message(column: _Column, target: int) -> str:
        name = column.declaration.name
        if column.what == 'name':
            subject = f"Name '{name}'"
        elif column.what == 'type':
            subject = f"Type of port '{name}'"
        else:
            subject = f"Packed dimension of '{name}'"
        return (f"{subject} starts at column {column.actual}; align it with the surrounding "
                f"declarations at column {target}")


__all__ = [
    'DeclarationAlignmentRule',
]
