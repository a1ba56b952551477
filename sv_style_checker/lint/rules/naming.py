"""
Naming convention rules: port suffixes, signal, module, parameter and type names,
active-low markers and register d/q pairing.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import re
from typing import Dict, List, Sequence

from ...analysis.parsing.lexer import Token
from ...analysis.structure import (
    Assignment, AssignOp, Port, ProcedureKind, SignalDeclaration, SignalKind, SourceFile,
    StatementKind, TypeKind, split_port_name,
)
from ...analysis.types import Diagnostic, SuggestedFix
from .base import LintRule, is_lower_snake, procedures, tested_signal

UPPER_CAMEL_RE = re.compile(r'^[A-Z][a-zA-Z0-9]*$')
ALL_CAPS_RE = re.compile(r'^[A-Z][A-Z0-9]*(_[A-Z0-9]+)*$')


class PortSuffixRule(LintRule):
    """Ports end in _i, _o or _io, with an n/p polarity marker glued to the suffix."""

    def __init__(self):
        super().__init__(
            name="port_suffix",
            description="Port names must end in _i, _o or _io matching their direction",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        if tree.module is None:
            return []
        diagnostics = []
        for port in tree.module.ports:
            expected = port.expected_name
            if port.name == expected:
                continue
            _, polarity, suffix = split_port_name(port.name)
            direction = port.direction.value
            if suffix == port.direction.suffix:
                message = (f"Port '{port.name}' must attach the '_{polarity}' polarity marker "
                           f"directly to its direction suffix: '{expected}'")
            elif suffix is not None:
                message = (f"{direction.capitalize()} port '{port.name}' ends in '_{suffix}' "
                           f"instead of '{port.expected_suffix}'")
            else:
                message = (f"{direction.capitalize()} port '{port.name}' is missing the "
                           f"'{port.expected_suffix}' suffix")
            diagnostics.append(self._diagnostic(port.name_span, message,
                                                SuggestedFix(port.name_span, expected)))
        return diagnostics


class SignalNamingRule(LintRule):
    """Internal signals use lower_snake_case."""

    def __init__(self):
        super().__init__(
            name="signal_naming",
            description="Internal signal names must be lower_snake_case",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        if tree.module is None:
            return []
        return [
            self._diagnostic(declaration.name_span,
                             f"Signal '{declaration.name}' is not lower_snake_case")
            for declaration in tree.module.declarations
            if declaration.kind is SignalKind.INTERNAL and not is_lower_snake(declaration.name)
        ]


class ActiveLowSuffixRule(LintRule):
    """
    Signals used as active-low carry an _n marker.

    A signal counts as active-low when it appears as ``negedge`` in an always_ff
    sensitivity list together with a negated reset test, when a reset-like name appears
    as ``negedge``, or when a reset-like name is tested negated by the first ``if`` of
    an always_ff block.
    """

    def __init__(self):
        super().__init__(
            name="active_low_suffix",
            description="Active-low signals must be marked with _n",
        )

    @staticmethod
    def _is_reset_like(name: str) -> bool:
        lowered = name.lower()
        return 'rst' in lowered or 'reset' in lowered

    def _active_low_signals(self, tree: SourceFile) -> List[str]:
        names: List[str] = []

        def add(name: str) -> None:
            if name not in names:
                names.append(name)

        for procedure in procedures(tree, ProcedureKind.ALWAYS_FF, ProcedureKind.ALWAYS):
            tested = None
            first = procedure.body.statements[0] if procedure.body.statements else None
            if first is not None and first.kind is StatementKind.CONDITIONAL:
                tested = tested_signal(first.condition)
            tested_low = tested[0] if tested is not None and tested[1] else None

            edges = procedure.sensitivity.edges if procedure.sensitivity is not None else []
            for event in edges:
                if event.edge != 'negedge' or event.name is None:
                    continue
                if event.name == tested_low or self._is_reset_like(event.name):
                    add(event.name)
            if procedure.kind is ProcedureKind.ALWAYS_FF and tested_low is not None \
                    and self._is_reset_like(tested_low):
                add(tested_low)
        return names

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        if tree.module is None:
            return []
        diagnostics = []
        for name in self._active_low_signals(tree):
            declaration = tree.signal(name)
            if declaration is None or declaration.kind.is_parameter:
                continue
            if isinstance(declaration, Port):
                if declaration.polarity == 'n':
                    continue
                replacement = f"{declaration.base_name}_n{declaration.direction.suffix}"
            else:
                if name.endswith('_n'):
                    continue
                replacement = f"{name}_n"
            diagnostics.append(self._diagnostic(
                declaration.name_span,
                f"Signal '{name}' is used as active-low but is not marked with '_n'",
                SuggestedFix(declaration.name_span, replacement),
            ))
        return diagnostics


class DqNamingRule(LintRule):
    """Registers are named <base>_q and loaded from <base>_d in always_ff."""

    def __init__(self):
        super().__init__(
            name="dq_naming",
            description="Flip-flop outputs end in _q and are loaded from a matching _d signal",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for procedure in procedures(tree, ProcedureKind.ALWAYS_FF):
            loads = [assignment for assignment in procedure.body.assignments()
                     if assignment.op is AssignOp.NONBLOCKING
                     and assignment.target.base_name is not None]
            paired: Dict[str, bool] = {}
            first_load: Dict[str, Assignment] = {}
            for assignment in loads:
                target = assignment.target.base_name
                source = assignment.value.single_identifier()
                source_name = source.text if source is not None else None

                if target.endswith('_q'):
                    base = target[:-2]
                    first_load.setdefault(target, assignment)
                    paired.setdefault(target, False)
                    if source_name == f"{base}_d":
                        paired[target] = True
                    elif source_name is not None and source_name.endswith('_d'):
                        diagnostics.append(self._diagnostic(
                            assignment.value.span,
                            f"Register '{target}' is loaded from '{source_name}'; "
                            f"expected '{base}_d'",
                        ))
                        paired[target] = True
                elif source_name is not None and source_name.endswith('_d'):
                    expected = f"{source_name[:-2]}_q"
                    diagnostics.append(self._diagnostic(
                        assignment.target.span,
                        f"Register '{target}' is loaded from '{source_name}' and should be "
                        f"named '{expected}'",
                        SuggestedFix(assignment.target.span, expected),
                    ))

            for target, has_pair in paired.items():
                if not has_pair:
                    assignment = first_load[target]
                    diagnostics.append(self._diagnostic(
                        assignment.target.span,
                        f"Register '{target}' is never loaded from '{target[:-2]}_d'",
                    ))
        return diagnostics


class ModuleNamingRule(LintRule):
    """Module names use lower_snake_case."""

    def __init__(self):
        super().__init__(
            name="module_naming",
            description="Module names must be lower_snake_case",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        if tree.module is None or is_lower_snake(tree.module.name):
            return []
        return [self._diagnostic(tree.module.name_span,
                                 f"Module '{tree.module.name}' is not lower_snake_case")]


class ParameterNamingRule(LintRule):
    """Parameters use UpperCamelCase; ALL_CAPS is tolerated."""

    def __init__(self):
        super().__init__(
            name="parameter_naming",
            description="Parameter names must be UpperCamelCase",
        )

    @staticmethod
    def _parameters(tree: SourceFile) -> List[SignalDeclaration]:
        module = tree.module
        return list(module.parameters) + [declaration for declaration in module.declarations
                                          if declaration.kind.is_parameter]

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        if tree.module is None:
            return []
        diagnostics = []
        for parameter in self._parameters(tree):
            if UPPER_CAMEL_RE.match(parameter.name) or ALL_CAPS_RE.match(parameter.name):
                continue
            diagnostics.append(self._diagnostic(
                parameter.name_span,
                f"{parameter.kind.value.capitalize()} '{parameter.name}' is not UpperCamelCase",
            ))
        return diagnostics


class TypedefSuffixRule(LintRule):
    """Enum typedefs end in _e, all other typedefs in _t."""

    def __init__(self):
        super().__init__(
            name="typedef_suffix",
            description="Typedef names must end in _e (enums) or _t",
        )

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        diagnostics = []
        for typedef in tree.all_typedefs():
            # File-scope typedefs are reported once, by the tree that holds their text
            if typedef.anonymous or not tree.owns(typedef.name_span.start):
                continue
            suffix = '_e' if typedef.kind is TypeKind.ENUM else '_t'
            if typedef.name.endswith(suffix):
                continue
            kind = 'Enum type' if typedef.kind is TypeKind.ENUM else 'Type'
            diagnostics.append(self._diagnostic(
                typedef.name_span,
                f"{kind} '{typedef.name}' must end in '{suffix}'",
            ))
        return diagnostics


__all__ = [
    'PortSuffixRule',
    'SignalNamingRule',
    'ActiveLowSuffixRule',
    'DqNamingRule',
    'ModuleNamingRule',
    'ParameterNamingRule',
    'TypedefSuffixRule',
]
