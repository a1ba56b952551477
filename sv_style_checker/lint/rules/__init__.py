"""
Lint rules for (System)Verilog style checking.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from typing import List

from .base import LintRule, LintRuleLevel
from .alignment import DeclarationAlignmentRule
from .blocks import BeginPlacementRule, BlockDelimiterRule, DanglingStatementRule
from .case import CaseCompletenessRule
from .formatting import IndentationRule, LongLinesRule, NoTabsRule, TrailingWhitespaceRule
from .naming import (
    ActiveLowSuffixRule, DqNamingRule, ModuleNamingRule, ParameterNamingRule, PortSuffixRule,
    SignalNamingRule, TypedefSuffixRule,
)
from .operators import ImplicitTruncationRule, LogicalOperatorRule
from .procedures import (
    AssignmentDisciplineRule, LatchDefaultRule, LegacyAlwaysRule, SensitivityListRule,
)


# Registry of all available lint rules
ALL_LINT_RULES = [
    PortSuffixRule,
    SignalNamingRule,
    ActiveLowSuffixRule,
    DeclarationAlignmentRule,
    LogicalOperatorRule,
    ImplicitTruncationRule,
    BlockDelimiterRule,
    DanglingStatementRule,
    CaseCompletenessRule,
    AssignmentDisciplineRule,
    LatchDefaultRule,
    SensitivityListRule,
    DqNamingRule,
    ModuleNamingRule,
    ParameterNamingRule,
    TypedefSuffixRule,
    LegacyAlwaysRule,
    BeginPlacementRule,
    LongLinesRule,
    NoTabsRule,
    TrailingWhitespaceRule,
    IndentationRule,
]


def get_default_rules() -> List[LintRule]:
    """Get a fresh instance of every registered rule; some start disabled."""
    return [rule_class() for rule_class in ALL_LINT_RULES]


__all__ = [
    'LintRule',
    'LintRuleLevel',
    'PortSuffixRule',
    'SignalNamingRule',
    'ActiveLowSuffixRule',
    'DeclarationAlignmentRule',
    'LogicalOperatorRule',
    'ImplicitTruncationRule',
    'BlockDelimiterRule',
    'DanglingStatementRule',
    'CaseCompletenessRule',
    'AssignmentDisciplineRule',
    'LatchDefaultRule',
    'SensitivityListRule',
    'DqNamingRule',
    'ModuleNamingRule',
    'ParameterNamingRule',
    'TypedefSuffixRule',
    'LegacyAlwaysRule',
    'BeginPlacementRule',
    'LongLinesRule',
    'NoTabsRule',
    'TrailingWhitespaceRule',
    'IndentationRule',
    'ALL_LINT_RULES',
    'get_default_rules',
]
