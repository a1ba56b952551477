"""
Case statement completeness.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List, Optional, Sequence, Set

from ...analysis.parsing.lexer import Token, TokenKind
from ...analysis.structure import (
    CaseStatement, Expression, SourceFile, StatementKind, TypeKind, literal_value,
)
from ...analysis.types import Diagnostic
from .base import LintRule, statements

# Widest subject for which full numeric coverage is enumerated
MAX_ENUMERATED_WIDTH = 8


def _label_name(label: Expression) -> Optional[str]:
    """Enum member named by a label, allowing a package prefix."""
    tokens = label.unwrap().tokens
    if len(tokens) == 1 and tokens[0].kind is TokenKind.IDENTIFIER:
        return tokens[0].text
    if len(tokens) == 3 and tokens[1].is_op('::') and tokens[2].kind is TokenKind.IDENTIFIER:
        return tokens[2].text
    return None


class CaseCompletenessRule(LintRule):
    """
    Case statements have a non-empty default unless they provably cover every value.

    Coverage is proven when the subject is an enum-typed signal and every member has an
    arm, or when the subject is at most eight bits wide and every value appears as a
    numeric label. unique, unique0 and priority cases follow the same policy.
    """

    def __init__(self):
        super().__init__(
            name="case_completeness",
            description="Case statements need a default arm unless provably exhaustive",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for case in statements(tree, StatementKind.CASE):
            default = case.default_item
            if default is not None:
                if default.is_empty:
                    diagnostics.append(self._diagnostic(
                        default.span,
                        f"Empty default arm in '{case.keyword}'; assign a value or "
                        f"remove the arm",
                    ))
                continue
            if self._is_exhaustive(tree, case):
                continue
            keyword = f"{case.qualifier} {case.keyword}" if case.qualifier else case.keyword
            diagnostics.append(self._diagnostic(
                case.span,
                f"'{keyword}' has no default arm and does not provably cover every value "
                f"of '{case.subject.text}'",
            ))
        return diagnostics

    def _is_exhaustive(self, tree: SourceFile, case: CaseStatement) -> bool:
        subject = case.subject.single_identifier()
        if subject is None:
            return False
        declaration = tree.signal(subject.text)
        if declaration is None:
            return False

        if declaration.type_keyword is not None and not declaration.packed_dimensions:
            typedef = tree.lookup_type(declaration.type_keyword)
            if typedef is not None and typedef.kind is TypeKind.ENUM:
                covered = {_label_name(label) for label in case.labels}
                return set(typedef.members) <= covered

        if case.keyword != 'case':
            return False
        width = tree.width_of(subject.text)
        if width is None or width > MAX_ENUMERATED_WIDTH:
            return False
        values: Set[int] = set()
        for label in case.labels:
            tokens = label.unwrap().tokens
            if len(tokens) != 1 or tokens[0].kind is not TokenKind.LITERAL:
                return False
            value = literal_value(tokens[0].text)
            if value is None:
                return False
            values.add(value)
        return values >= set(range(2 ** width))


__all__ = [
    'CaseCompletenessRule',
]
