"""
Procedure rules: assignment discipline, latch-free combinational logic, sensitivity
lists and legacy ``always`` blocks.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List, Optional, Sequence, Set, Tuple

from ...analysis.parsing.lexer import Token
from ...analysis.structure import (
    AssignOp, EdgeEvent, Procedure, ProcedureKind, SourceFile, Statement, StatementKind,
    child_blocks,
)
from ...analysis.types import Diagnostic, SuggestedFix
from .base import LintRule, LintRuleLevel, procedures, tested_signal


class AssignmentDisciplineRule(LintRule):
    """Blocking assignments in always_comb, nonblocking ones in always_ff."""

    def __init__(self):
        super().__init__(
            name="assignment_discipline",
            description="always_comb uses '=' and always_ff uses '<='",
            level=LintRuleLevel.ERROR,
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for procedure in procedures(tree, ProcedureKind.ALWAYS_COMB, ProcedureKind.ALWAYS_FF):
            if procedure.kind is ProcedureKind.ALWAYS_COMB:
                wrong, expected = AssignOp.NONBLOCKING, '='
            else:
                wrong, expected = AssignOp.BLOCKING, '<='
            for assignment in procedure.body.assignments():
                if assignment.op is not wrong:
                    continue
                fix = None
                if assignment.operator in ('=', '<='):
                    fix = SuggestedFix(assignment.operator_span, expected)
                diagnostics.append(self._diagnostic(
                    assignment.operator_span,
                    f"'{assignment.operator}' assignment to '{assignment.target.expression.text}' "
                    f"in {procedure.kind.value}; use '{expected}'",
                    fix,
                ))
        return diagnostics


def _assigned_names(statement: Statement) -> List[str]:
    names: List[str] = []
    for block in child_blocks(statement):
        for assignment in block.assignments():
            for name in assignment.target.names:
                if name not in names:
                    names.append(name)
    return names


class LatchDefaultRule(LintRule):
    """
    Every signal driven in always_comb gets an unconditional default first.

    The top-level statements of the block are walked in order. Unconditional
    assignments (also inside bare begin/end and loop bodies) mark their targets as
    defaulted; an if or case that assigns a signal not yet defaulted infers a latch.
    """

    def __init__(self):
        super().__init__(
            name="latch_default",
            description="Signals assigned in always_comb need a preceding default assignment",
            level=LintRuleLevel.ERROR,
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for procedure in procedures(tree, ProcedureKind.ALWAYS_COMB):
            defaulted: Set[str] = set()
            self._visit(procedure.body.statements, defaulted, diagnostics)
        return diagnostics

    def _visit(self, body: Sequence[Statement], defaulted: Set[str],
               diagnostics: List[Diagnostic]) -> None:
        for statement in body:
            if statement.kind is StatementKind.ASSIGNMENT:
                defaulted.update(statement.target.names)
            elif statement.kind is StatementKind.NESTED_BLOCK:
                self._visit(statement.block.statements, defaulted, diagnostics)
            elif statement.kind is StatementKind.LOOP:
                self._visit(statement.body.statements, defaulted, diagnostics)
            elif statement.kind in (StatementKind.CONDITIONAL, StatementKind.CASE):
                assigned = _assigned_names(statement)
                missing = [name for name in assigned if name not in defaulted]
                if missing:
                    listed = ', '.join(f"'{name}'" for name in missing)
                    plural = 's' if len(missing) > 1 else ''
                    diagnostics.append(self._diagnostic(
                        statement.span,
                        f"Signal{plural} {listed} assigned conditionally without a preceding "
                        f"default; a latch is inferred",
                    ))
                defaulted.update(assigned)


class SensitivityListRule(LintRule):
    """
    always_ff sensitivity lists hold a clock edge and properly handled resets.

    Events are combined with 'or' or ',', never '|' or '||'. An asynchronous reset in
    the list must be tested, with its polarity, by the first if of the block.
    """

    def __init__(self):
        super().__init__(
            name="sensitivity_list",
            description="always_ff sensitivity lists must be a clock edge plus reset edges",
            level=LintRuleLevel.ERROR,
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for procedure in procedures(tree, ProcedureKind.ALWAYS_FF):
            sensitivity = procedure.sensitivity
            if sensitivity is None:
                continue
            for separator in sensitivity.separators:
                if separator.is_op('|', '||'):
                    diagnostics.append(self._diagnostic(
                        separator.span,
                        f"Sensitivity list events are joined with 'or' or ',', "
                        f"not '{separator.text}'",
                        SuggestedFix(separator.span, 'or'),
                    ))
            for event in sensitivity.events:
                if event.edge is None:
                    diagnostics.append(self._diagnostic(
                        event.span,
                        f"Level-sensitive event '{event.signal.text}' in always_ff",
                    ))

            edges = sensitivity.edges
            if edges and all(event.is_reset_like for event in edges):
                diagnostics.append(self._diagnostic(
                    sensitivity.span,
                    "always_ff sensitivity list has no clock edge",
                ))

            tested = self._leading_test(procedure)
            for event in edges:
                if event.is_reset_like and not self._handles(event, tested):
                    name = event.signal.text
                    test = f"!{name}" if event.edge == 'negedge' else name
                    diagnostics.append(self._diagnostic(
                        event.span,
                        f"Asynchronous reset '{name}' must be tested as "
                        f"'if ({test})' by the first statement of the block",
                    ))
        return diagnostics

    @staticmethod
    def _leading_test(procedure: Procedure) -> Optional[Tuple[str, bool]]:
        statements = procedure.body.statements
        if not statements or statements[0].kind is not StatementKind.CONDITIONAL:
            return None
        return tested_signal(statements[0].condition)

    @staticmethod
    def _handles(event: EdgeEvent, tested: Optional[Tuple[str, bool]]) -> bool:
        if tested is None or event.name is None:
            return False
        name, active_low = tested
        if name != event.name:
            return False
        if event.edge == 'negedge':
            return active_low
        if event.edge == 'posedge':
            return not active_low
        return True


class LegacyAlwaysRule(LintRule):
    """Plain ``always`` is replaced by always_comb or always_ff."""

    def __init__(self):
        super().__init__(
            name="legacy_always",
            description="Use always_comb or always_ff instead of always",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for procedure in procedures(tree, ProcedureKind.ALWAYS):
            has_edge = procedure.sensitivity is not None and bool(procedure.sensitivity.edges)
            replacement = 'always_ff' if has_edge else 'always_comb'
            diagnostics.append(self._diagnostic(
                procedure.keyword_span,
                f"Plain 'always' block; use '{replacement}'",
            ))
        return diagnostics


__all__ = [
    'AssignmentDisciplineRule',
    'LatchDefaultRule',
    'SensitivityListRule',
    'LegacyAlwaysRule',
]
