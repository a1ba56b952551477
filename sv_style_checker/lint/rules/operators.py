"""
Operator rules: bitwise operators used as logical ones, and silent truncation to a
single bit.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List, Optional, Sequence

from ...analysis.parsing.lexer import Token, TokenKind
from ...analysis.structure import (
    Expression, SourceFile, StatementKind, decimal_value, literal_width,
)
from ...analysis.types import Diagnostic, SuggestedFix
from .base import LintRule, assignments, statements


def select_width(tree: SourceFile, name: str, expression: Expression) -> Optional[int]:
    """Width of `name[...]` when the select bounds are constant."""
    declaration = tree.signal(name)
    if declaration is None or declaration.unpacked_dimensions \
            or len(declaration.packed_dimensions) > 1:
        return None
    select = Expression.from_tokens(expression.tokens[2:-1], expression.span)
    # A second bracket pair at the outer level means a chained select
    if any(depth == 0 and token.is_op(']') for token, depth in
           zip(select.tokens, select.depths())):
        return None
    indexed = select.binary_operators('+:', '-:')
    if indexed:
        return decimal_value(select.split_at(indexed)[-1].text)
    ranged = [token for token, depth in zip(select.tokens, select.depths())
              if depth == 0 and token.is_op(':')]
    if not ranged:
        return 1
    parts = select.split_at(ranged)
    if len(parts) != 2:
        return None
    high, low = decimal_value(parts[0].text), decimal_value(parts[1].text)
    if high is None or low is None:
        return None
    return abs(high - low) + 1


def _is_boolean_operand(tree: SourceFile, operand: Expression) -> bool:
    if operand.is_boolean():
        return True
    inner = operand.unwrap()
    if inner.tokens and inner.tokens[0].is_op('~'):
        inner = Expression.from_tokens(inner.tokens[1:], inner.span)
    name = inner.single_identifier()
    if name is not None:
        return tree.is_single_bit(name.text)
    tokens = inner.tokens
    if len(tokens) > 3 and tokens[0].kind is TokenKind.IDENTIFIER and tokens[1].is_op('[') \
            and tokens[-1].is_op(']'):
        return select_width(tree, tokens[0].text, inner) == 1
    return False


class LogicalOperatorRule(LintRule):
    """Boolean operands are combined with && and ||, not & and |."""

    def __init__(self):
        super().__init__(
            name="logical_operator",
            description="Use '&&' and '||' rather than '&' and '|' in boolean contexts",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for conditional in statements(tree, StatementKind.CONDITIONAL):
            diagnostics.extend(self._check_expression(tree, conditional.condition))
        for assignment in assignments(tree):
            target = assignment.target.expression.single_identifier()
            if target is not None and tree.is_single_bit(target.text):
                diagnostics.extend(self._check_expression(tree, assignment.value))
        return diagnostics

    def _check_expression(self, tree: SourceFile, expression: Expression) -> List[Diagnostic]:
        inner = expression.unwrap()
        if not inner.tokens or inner.binary_operators('?'):
            return []

        logical = inner.binary_operators('&&', '||')
        if logical:
            diagnostics = []
            for part in inner.split_at(logical):
                diagnostics.extend(self._check_expression(tree, part))
            return diagnostics

        operators = inner.binary_operators('&', '|')
        if not operators:
            return []
        operands = inner.split_at(operators)
        if len(operands) != len(operators) + 1:
            return []
        if not all(_is_boolean_operand(tree, operand) for operand in operands):
            return []
        return [
            self._diagnostic(
                operator.span,
                f"Bitwise '{operator.text}' combines boolean operands; use '{operator.text * 2}'",
                SuggestedFix(operator.span, operator.text * 2),
            )
            for operator in operators
        ]


class ImplicitTruncationRule(LintRule):
    """
    A wider value assigned to a single-bit target is truncated silently.

    Only widths that can be read off the expression are considered: a declared signal,
    a sized literal, a part-select, an inversion or a concatenation of those.
    """

    def __init__(self):
        super().__init__(
            name="implicit_truncation",
            description="Multi-bit values must not be assigned to 1-bit signals without "
                        "an explicit reduction",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for assignment in assignments(tree):
            target = assignment.target.expression.single_identifier()
            if target is None or not tree.is_single_bit(target.text):
                continue
            if assignment.value.is_boolean():
                continue
            width = self._width(tree, assignment.value)
            if width is not None and width > 1:
                diagnostics.append(self._diagnostic(
                    assignment.value.span,
                    f"{width}-bit value assigned to 1-bit '{target.text}' is truncated; "
                    f"reduce it explicitly, e.g. with '|' or '!= 0'",
                ))
        return diagnostics

    def _width(self, tree: SourceFile, expression: Expression) -> Optional[int]:
        inner = expression.unwrap()
        tokens = inner.tokens
        if not tokens:
            return None
        if tokens[0].is_op('~'):
            return self._width(tree, Expression.from_tokens(tokens[1:], inner.span))

        if len(tokens) == 1:
            if tokens[0].kind is TokenKind.IDENTIFIER:
                return tree.width_of(tokens[0].text)
            if tokens[0].kind is TokenKind.LITERAL:
                return literal_width(tokens[0].text)
            return None

        if tokens[0].kind is TokenKind.IDENTIFIER and tokens[1].is_op('[') \
                and tokens[-1].is_op(']'):
            return select_width(tree, tokens[0].text, inner)

        if tokens[0].is_op('{') and tokens[-1].is_op('}'):
            return self._concatenation_width(tree, inner)
        return None

    def _concatenation_width(self, tree: SourceFile, expression: Expression) -> Optional[int]:
        content = Expression.from_tokens(expression.tokens[1:-1], expression.span)
        if any(depth == 0 and token.is_op('{') for token, depth in
               zip(content.tokens, content.depths())):
            # Replication
            return None
        separators = [token for token, depth in zip(content.tokens, content.depths())
                      if depth == 0 and token.is_op(',')]
        total = 0
        for part in content.split_at(separators):
            width = self._width(tree, part)
            if width is None:
                return None
            total += width
        return total


__all__ = [
    'LogicalOperatorRule',
    'ImplicitTruncationRule',
]
