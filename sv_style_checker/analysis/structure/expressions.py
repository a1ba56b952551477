"""
Expression representation for (System)Verilog structural analysis.

Expressions are kept as token spans rather than full trees; the helpers here answer
the questions style rules ask of them (which names are read, which operators sit at the
top level, is the expression boolean-valued).

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ...span import Span
from ..parsing.lexer import Token, TokenKind


OPENERS = {'(': ')', '[': ']', '{': '}', "'{": '}'}
CLOSERS = {')', ']', '}'}

RELATIONAL_OPERATORS = frozenset({
    '==', '!=', '===', '!==', '==?', '!=?', '<', '>', '<=', '>=', '&&', '||', '->', '<->',
})
REDUCTION_OPERATORS = frozenset({'&', '|', '^', '~&', '~|', '~^', '^~'})

SIZED_LITERAL_RE = re.compile(r"^(\d[\d_]*)\s*'[sS]?[bBoOdDhH]")
DECIMAL_RE = re.compile(r"^\d[\d_]*$")


def literal_width(text: str) -> Optional[int]:
    """Width of a sized literal such as 8'hFF; None for unsized literals."""
    match = SIZED_LITERAL_RE.match(text)
    if match:
        return int(match.group(1).replace('_', ''))
    return None


def decimal_value(text: str) -> Optional[int]:
    """Value of a plain decimal literal, or None."""
    text = text.strip()
    if DECIMAL_RE.match(text):
        return int(text.replace('_', ''))
    match = re.match(r"^(?:\d[\d_]*)?\s*'[dD]\s*(\d[\d_]*)$", text)
    if match:
        return int(match.group(1).replace('_', ''))
    return None


BASED_LITERAL_RE = re.compile(r"^(?:\d[\d_]*)?\s*'[sS]?(?P<base>[bBoOdDhH])\s*(?P<digits>[0-9a-fA-F_]+)$")
BASES = {'b': 2, 'o': 8, 'd': 10, 'h': 16}


def literal_value(text: str) -> Optional[int]:
    """Numeric value of a decimal or based literal; None when it holds x, z or ? digits."""
    text = text.strip()
    if DECIMAL_RE.match(text):
        return int(text.replace('_', ''))
    if text == "'0":
        return 0
    match = BASED_LITERAL_RE.match(text)
    if not match:
        return None
    try:
        return int(match.group('digits').replace('_', ''), BASES[match.group('base').lower()])
    except ValueError:
        return None


def _ends_operand(token: Token) -> bool:
    if token.kind in (TokenKind.IDENTIFIER, TokenKind.LITERAL, TokenKind.STRING,
                      TokenKind.DIRECTIVE):
        return True
    return token.is_op(')', ']', '}')


@dataclass(frozen=True)
class Expression:
    """A contiguous run of significant tokens with its source text."""
    tokens: Tuple[Token, ...]
    span: Span
    text: str

    @classmethod
    def from_tokens(cls, tokens, span: Span) -> 'Expression':
        """Build an expression whose text is the space-joined token texts."""
        tokens = tuple(tokens)
        return cls(tokens, span, ' '.join(token.text for token in tokens))

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    def depths(self) -> List[int]:
        """Nesting depth of each token; brackets sit at the depth outside them."""
        result = []
        depth = 0
        for token in self.tokens:
            if token.kind is TokenKind.OPERATOR and token.text in CLOSERS:
                depth = max(0, depth - 1)
                result.append(depth)
                continue
            result.append(depth)
            if token.kind is TokenKind.OPERATOR and token.text in OPENERS:
                depth += 1
        return result

    def top_level_operators(self) -> List[Token]:
        """Operator tokens outside any parentheses, brackets or braces."""
        return [token for token, depth in zip(self.tokens, self.depths())
                if depth == 0 and token.kind is TokenKind.OPERATOR
                and token.text not in OPENERS and token.text not in CLOSERS]

    def binary_operators(self, *ops: str) -> List[Token]:
        """Top-level operators from ops used in binary (not unary/reduction) position."""
        result = []
        depths = self.depths()
        for index, token in enumerate(self.tokens):
            if depths[index] != 0 or not token.is_op(*ops):
                continue
            if index > 0 and _ends_operand(self.tokens[index - 1]):
                result.append(token)
        return result

    def split_at(self, operators: List[Token]) -> List['Expression']:
        """Split into operands around the given top-level operator tokens."""
        cut_offsets = {token.offset for token in operators}
        parts: List[List[Token]] = [[]]
        for token in self.tokens:
            if token.offset in cut_offsets:
                parts.append([])
            else:
                parts[-1].append(token)
        return [Expression.from_tokens(part, self.span) for part in parts if part]

    def unwrap(self) -> 'Expression':
        """Remove parentheses enclosing the whole expression."""
        expression = self
        while (len(expression.tokens) >= 2 and expression.tokens[0].is_op('(')
               and expression.tokens[-1].is_op(')')
               and expression._matching_close(0) == len(expression.tokens) - 1):
            expression = Expression.from_tokens(expression.tokens[1:-1], expression.span)
        return expression

    def _matching_close(self, open_index: int) -> Optional[int]:
        depth = 0
        for index in range(open_index, len(self.tokens)):
            token = self.tokens[index]
            if token.kind is TokenKind.OPERATOR and token.text in OPENERS:
                depth += 1
            elif token.kind is TokenKind.OPERATOR and token.text in CLOSERS:
                depth -= 1
                if depth == 0:
                    return index
        return None

    def single_identifier(self) -> Optional[Token]:
        """The identifier if this expression is nothing but a name."""
        inner = self.unwrap()
        if len(inner.tokens) == 1 and inner.tokens[0].kind is TokenKind.IDENTIFIER:
            return inner.tokens[0]
        return None

    def is_boolean(self) -> bool:
        """True when the value is 1-bit by construction.

        That is a relational, equality or logical operator at the top level, a leading
        logical negation or reduction operator, or a single-bit literal.
        """
        inner = self.unwrap()
        if not inner.tokens:
            return False
        if any(token.text in RELATIONAL_OPERATORS for token in inner.top_level_operators()):
            return True
        first = inner.tokens[0]
        if first.is_op('!') or (first.is_op(*REDUCTION_OPERATORS)
                                and not inner.binary_operators(*REDUCTION_OPERATORS,
                                                               '+', '-', '*', '/', '%',
                                                               '<<', '>>', '<<<', '>>>')):
            return True
        if len(inner.tokens) == 1 and inner.tokens[0].kind is TokenKind.LITERAL:
            return literal_width(inner.tokens[0].text) == 1
        return any(token.is_keyword('inside') for token in inner.top_level_keywords())

    def top_level_keywords(self) -> List[Token]:
        return [token for token, depth in zip(self.tokens, self.depths())
                if depth == 0 and token.kind is TokenKind.KEYWORD]

    def __str__(self) -> str:
        return self.text


__all__ = [
    "Expression",
    "RELATIONAL_OPERATORS",
    "REDUCTION_OPERATORS",
    "literal_width",
    "decimal_value",
    "literal_value",
]
