"""
Base class and traversal helpers shared by lint rules.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import re
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from ...analysis.parsing.lexer import Token, TokenKind
from ...analysis.structure import (
    Assignment, Block, BlockKind, Expression, Procedure, ProcedureKind, SourceFile, Statement,
    StatementKind, literal_value,
)
from ...analysis.types import Diagnostic, DiagnosticSeverity, SuggestedFix
from ...span import Span

LOWER_SNAKE_RE = re.compile(r'^[a-z][a-z0-9]*(_[a-z0-9]+)*$')


class LintRuleLevel(Enum):
    """Severity levels for lint rules."""
    ERROR = "error"
    WARNING = "warning"

    @property
    def severity(self) -> DiagnosticSeverity:
        return DiagnosticSeverity(self.value)


class LintRule:
    """
    Base class for lint rules.

    A rule inspects one tree (and the file's tokens) and returns diagnostics. Rules keep
    no state between calls, so running them in any order gives the same result.
    """

    def __init__(self, name: str, description: str, level: LintRuleLevel = LintRuleLevel.WARNING,
                 enabled: bool = True):
        self.name = name
        self.description = description
        self.level = level
        self.enabled = enabled

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        """
        Check a tree for rule violations.

        Args:
            tree: Structural tree of one module
            tokens: Full token sequence of the file the tree came from

        Returns:
            List of diagnostics for violations
        """
        raise NotImplementedError

    def _diagnostic(self, span: Span, message: str,
                    fix: Optional[SuggestedFix] = None) -> Diagnostic:
        """Create a diagnostic at this rule's current level."""
        return Diagnostic(
            rule_id=self.name,
            severity=self.level.severity,
            span=span,
            message=message,
            fix=fix,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, level={self.level.value})"


def is_lower_snake(name: str) -> bool:
    return bool(LOWER_SNAKE_RE.match(name))


def tested_signal(condition: Expression) -> Optional[Tuple[str, bool]]:
    """
    The signal a simple condition tests and whether it tests it active-low.

    ``!rst_ni``, ``~rst_ni`` and ``rst_ni == 1'b0`` test rst_ni low; ``rst_i`` and
    ``rst_i == 1`` test rst_i high. Anything more complex returns None.
    """
    inner = condition.unwrap()
    tokens = inner.tokens
    if not tokens:
        return None
    if tokens[0].is_op('!', '~'):
        operand = Expression.from_tokens(tokens[1:], inner.span).single_identifier()
        return (operand.text, True) if operand is not None else None
    single = inner.single_identifier()
    if single is not None:
        return single.text, False
    if len(tokens) == 3 and tokens[0].kind is TokenKind.IDENTIFIER \
            and tokens[1].is_op('==', '===') and tokens[2].kind is TokenKind.LITERAL:
        value = literal_value(tokens[2].text)
        if value in (0, 1):
            return tokens[0].text, value == 0
    return None


def procedures(tree: SourceFile, *kinds: ProcedureKind) -> Iterator[Procedure]:
    """Procedures of the tree's module, optionally restricted to some kinds."""
    if tree.module is None:
        return
    for procedure in tree.module.procedures:
        if not kinds or procedure.kind in kinds:
            yield procedure


def blocks(tree: SourceFile) -> Iterator[Block]:
    if tree.module is None:
        return
    yield from tree.module.blocks()


def statements(tree: SourceFile, *kinds: StatementKind) -> Iterator[Statement]:
    """Every procedural statement exactly once."""
    for block in blocks(tree):
        # Module-level regions repeat continuous assignments listed on the module
        if block.kind is BlockKind.MODULE:
            continue
        for statement in block.statements:
            if not kinds or statement.kind in kinds:
                yield statement


def assignments(tree: SourceFile) -> Iterator[Assignment]:
    """Continuous and procedural assignments."""
    if tree.module is None:
        return
    yield from tree.module.continuous_assigns
    yield from statements(tree, StatementKind.ASSIGNMENT)


__all__ = [
    'LintRule',
    'LintRuleLevel',
    'is_lower_snake',
    'tested_signal',
    'procedures',
    'blocks',
    'statements',
    'assignments',
]
