"""
Linting engine for the (System)Verilog style checker.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .. import internal_error
from ..config import Config
from ..analysis import StyleAnalysis
from ..analysis.parsing.lexer import Token
from ..analysis.structure import SourceFile
from ..analysis.types import Diagnostic
from .rules import LintRule, LintRuleLevel, get_default_rules

logger = logging.getLogger(__name__)

# Keys every rule understands; anything else targets a rule attribute
COMMON_RULE_KEYS = frozenset({'level', 'enabled'})


class LintEngine:
    """Main linting engine."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config if config is not None else Config()
        self.rules: List[LintRule] = []

        # Register default rules
        self._register_default_rules()

        # Apply configuration
        self._apply_config()

    def _register_default_rules(self) -> None:
        """Register default lint rules."""
        self.rules = get_default_rules()

    def _apply_config(self) -> None:
        """Apply lint configuration."""
        lint_config = self.config.lint_config
        if not lint_config:
            return

        known = {rule.name for rule in self.rules}
        for name in list(lint_config.enabled_rules) + list(lint_config.disabled_rules) \
                + list(lint_config.rule_configs):
            if name not in known:
                logger.warning(f"Unknown lint rule in configuration: {name}")

        # Enable/disable rules based on configuration
        for rule in self.rules:
            if rule.name in lint_config.disabled_rules:
                rule.enabled = False
            elif rule.name in lint_config.enabled_rules:
                rule.enabled = True

            # Apply rule-specific configuration
            if rule.name in lint_config.rule_configs:
                rule_config = lint_config.rule_configs[rule.name]
                self._apply_rule_config(rule, rule_config)

    def _apply_rule_config(self, rule: LintRule, rule_config: Dict[str, Any]) -> None:
        """Apply configuration to a specific rule."""
        if 'level' in rule_config:
            try:
                rule.level = LintRuleLevel(rule_config['level'])
            except ValueError:
                logger.warning(f"Invalid level for rule {rule.name}: {rule_config['level']}")

        if 'enabled' in rule_config:
            rule.enabled = bool(rule_config['enabled'])

        # Apply rule-specific settings
        for key, value in rule_config.items():
            if key in COMMON_RULE_KEYS:
                continue
            if key in ('name', 'description') or key.startswith('_') or not hasattr(rule, key):
                logger.warning(f"Rule {rule.name} has no setting '{key}'")
                continue
            current = getattr(rule, key)
            try:
                setattr(rule, key, type(current)(value) if current is not None else value)
            except (TypeError, ValueError):
                logger.warning(f"Invalid value for {rule.name}.{key}: {value!r}")

    def enabled_rules(self) -> List[LintRule]:
        return [rule for rule in self.rules if rule.enabled]

    def get_rule(self, name: str) -> Optional[LintRule]:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    def check(self, tree: SourceFile, tokens: Sequence[Token]) -> List[Diagnostic]:
        """
        Run every enabled rule over one tree.

        Args:
            tree: Structural tree of one module
            tokens: Full token sequence of the tree's file

        Returns:
            Diagnostics stable-sorted by (line, column, rule id)
        """
        diagnostics: List[Diagnostic] = []
        for rule in self.enabled_rules():
            try:
                diagnostics.extend(rule.check(tree, tokens))
            except Exception as e:
                internal_error("Lint rule {} failed on {}: {}", rule.name,
                               tree.file_path or '<text>', e)

        diagnostics.sort(key=lambda diagnostic: diagnostic.sort_key)
        logger.debug(f"Linted {tree.file_path or '<text>'}"
                     f"{' module ' + tree.module.name if tree.module else ''}: "
                     f"{len(self.enabled_rules())} rules, {len(diagnostics)} diagnostics")
        return diagnostics

    def lint_file(self, file_path: Optional[Path], content: str,
                  best_effort: bool = False) -> List[Diagnostic]:
        """
        Lint a file and return found issues.

        Args:
            file_path: Path to the file
            content: File content
            best_effort: Keep lexing past lex errors

        Returns:
            Lex/parse errors and rule diagnostics for the file
        """
        return StyleAnalysis(self.check, best_effort).analyze_file(file_path, content)

    def get_rule_info(self) -> Dict[str, Dict[str, Any]]:
        """Get information about all rules."""
        rule_info = {}

        for rule in self.rules:
            rule_info[rule.name] = {
                'description': rule.description,
                'level': rule.level.value,
                'enabled': rule.enabled
            }

        return rule_info

    def load_config(self, config_path: Path) -> None:
        """Load lint configuration from file."""
        self.config.load_lint_config(config_path)
        self._register_default_rules()
        self._apply_config()


def check(tree: SourceFile, tokens: Sequence[Token], config: Optional[Config] = None) -> List[Diagnostic]:
    """Run the default rule set, adjusted by config, over one tree."""
    return LintEngine(config).check(tree, tokens)


# Export main classes
__all__ = [
    "LintEngine",
    "LintRule",
    "LintRuleLevel",
    "check",
]
