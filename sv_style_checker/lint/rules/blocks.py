"""
Block structure rules: begin/end delimiting, dangling single statements and the
placement of ``begin``.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List, Sequence

from ...analysis.parsing.lexer import Token
from ...analysis.structure import (
    NEVER_DELIMITED, Block, BlockKind, SourceFile, StatementKind,
)
from ...analysis.types import Diagnostic
from .base import LintRule, blocks, statements


def describe(kind: BlockKind) -> str:
    """Human-readable name of the construct owning a block."""
    if kind is BlockKind.CASE_ITEM:
        return "case item"
    if kind is BlockKind.LOOP:
        return "loop"
    if kind is BlockKind.BARE:
        return "nested block"
    return f"'{kind.value}'"


def _continues_else_if(block: Block) -> bool:
    statement = block.single_statement
    return (block.kind is BlockKind.ELSE and statement is not None
            and statement.kind is StatementKind.CONDITIONAL and statement.is_else_if)


class BlockDelimiterRule(LintRule):
    """
    Multi-line bodies are wrapped in begin/end; module, case and function bodies are not.

    An if/else branch whose single statement starts on a later line is left to
    dangling_statement, and else-if chains are never reported.
    """

    def __init__(self):
        super().__init__(
            name="block_delimiter",
            description="Multi-line statement bodies must use begin/end",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for block in blocks(tree):
            if block.kind in NEVER_DELIMITED:
                if block.delimited and block.begin_span is not None:
                    diagnostics.append(self._diagnostic(
                        block.begin_span,
                        f"{describe(block.kind).capitalize()} bodies are not wrapped in begin/end",
                    ))
                continue
            if block.delimited or _continues_else_if(block):
                continue
            statement = block.single_statement
            if statement is None or not statement.span.range.is_multiline:
                continue
            if block.kind in (BlockKind.IF, BlockKind.ELSE) \
                    and statement.span.start.line > block.header_end.line:
                continue
            diagnostics.append(self._diagnostic(
                statement.span,
                f"Multi-line {describe(block.kind)} body must be wrapped in begin/end",
            ))

        for case in statements(tree, StatementKind.CASE):
            if case.delimited:
                diagnostics.append(self._diagnostic(
                    case.span,
                    f"'{case.keyword}' items are not wrapped in begin/end",
                ))
        return diagnostics


class DanglingStatementRule(LintRule):
    """An undelimited if/else branch starts on the line of its header."""

    def __init__(self):
        super().__init__(
            name="dangling_statement",
            description="Undelimited if/else bodies must stay on the header line",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for conditional in statements(tree, StatementKind.CONDITIONAL):
            for block in (conditional.then_block, conditional.else_block):
                if block is None or block.delimited or _continues_else_if(block):
                    continue
                statement = block.single_statement
                if statement is None or statement.span.start.line <= block.header_end.line:
                    continue
                keyword = 'if' if block.kind is BlockKind.IF else 'else'
                diagnostics.append(self._diagnostic(
                    statement.span,
                    f"Statement on the line after its '{keyword}' must be wrapped in "
                    f"begin/end or moved onto the '{keyword}' line",
                ))
        return diagnostics


class BeginPlacementRule(LintRule):
    """``begin`` sits on the same line as the construct it opens."""

    def __init__(self):
        super().__init__(
            name="begin_placement",
            description="'begin' must be on the same line as its if/else/always/case item",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for block in blocks(tree):
            if not block.delimited or block.begin_span is None \
                    or block.kind in (BlockKind.BARE, BlockKind.MODULE, BlockKind.FUNCTION):
                continue
            if block.begin_span.start.line != block.header_end.line:
                diagnostics.append(self._diagnostic(
                    block.begin_span,
                    f"'begin' of {describe(block.kind)} body must be on line "
                    f"{block.header_end.line} with its header",
                ))
        return diagnostics


__all__ = [
    'BlockDelimiterRule',
    'DanglingStatementRule',
    'BeginPlacementRule',
]
