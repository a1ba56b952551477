"""
Configuration management for the (System)Verilog style checker.

Two sources feed a `Config`: the JSON lint configuration (`--lint-cfg` or the
`lint_config_file` initialization option) and the options a client or the command
line passes at startup.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIAGNOSTICS = 100

LINT_CONFIG_KEYS = ('enabled_rules', 'disabled_rules', 'rule_configs')


class LogLevel(Enum):
    """Log levels accepted in initialization options."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"

    @classmethod
    def parse(cls, value: str) -> 'LogLevel':
        """Look up a level by name, case-insensitively; "warning" means WARN."""
        name = str(value).lower()
        if name == "warning":
            name = "warn"
        return cls(name)

    def to_logging(self) -> int:
        # logging has no TRACE
        return {
            LogLevel.ERROR: logging.ERROR,
            LogLevel.WARN: logging.WARNING,
            LogLevel.INFO: logging.INFO,
        }.get(self, logging.DEBUG)


def _rule_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{key}' must be a list of rule names")
    return list(value)


@dataclass
class LintConfig:
    """Rule selection and per-rule settings read from a lint configuration file."""
    enabled_rules: List[str] = field(default_factory=list)
    disabled_rules: List[str] = field(default_factory=list)
    rule_configs: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LintConfig':
        """
        Build a LintConfig from decoded JSON.

        Raises:
            ValueError: If the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError("Lint configuration must be a JSON object")
        for key in data:
            if key not in LINT_CONFIG_KEYS:
                logger.warning(f"Unknown key in lint configuration: {key}")

        rule_configs = data.get('rule_configs', {})
        if not isinstance(rule_configs, dict):
            raise ValueError("'rule_configs' must map rule names to objects")
        for rule_name, settings in rule_configs.items():
            if not isinstance(settings, dict):
                raise ValueError(f"Settings for rule {rule_name} must be an object")

        return cls(
            enabled_rules=_rule_list(data, 'enabled_rules'),
            disabled_rules=_rule_list(data, 'disabled_rules'),
            rule_configs={name: dict(settings) for name, settings in rule_configs.items()}
        )

    def disable(self, rule_name: str) -> None:
        """Disable a rule on top of whatever the file says."""
        if rule_name in self.enabled_rules:
            self.enabled_rules.remove(rule_name)
        if rule_name not in self.disabled_rules:
            self.disabled_rules.append(rule_name)


@dataclass
class InitializationOptions:
    """Options passed during LSP initialization or collected from the command line."""
    linting_enabled: bool = True
    lint_config_file: Optional[Path] = None
    max_diagnostics_per_file: int = DEFAULT_MAX_DIAGNOSTICS
    best_effort: bool = False
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InitializationOptions':
        """Create InitializationOptions from dictionary; bad values fall back to defaults."""
        log_level = LogLevel.INFO
        if data.get('log_level') is not None:
            try:
                log_level = LogLevel.parse(data['log_level'])
            except ValueError:
                logger.warning(f"Invalid log level: {data['log_level']}")

        limit = data.get('max_diagnostics_per_file', DEFAULT_MAX_DIAGNOSTICS)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            logger.warning(f"Invalid max_diagnostics_per_file: {limit!r}")
            limit = DEFAULT_MAX_DIAGNOSTICS

        config_file = data.get('lint_config_file')
        return cls(
            linting_enabled=bool(data.get('linting_enabled', True)),
            lint_config_file=Path(config_file) if config_file else None,
            max_diagnostics_per_file=limit,
            best_effort=bool(data.get('best_effort', False)),
            log_level=log_level
        )


class Config:
    """Configuration shared by the lint engine, the batch driver and the server."""

    def __init__(self):
        self._lint_config: Optional[LintConfig] = None
        self._initialization_options: Optional[InitializationOptions] = None
        self._workspace_root: Optional[Path] = None

    @property
    def workspace_root(self) -> Optional[Path]:
        """Get the workspace root directory."""
        return self._workspace_root

    @workspace_root.setter
    def workspace_root(self, path: Optional[Path]) -> None:
        self._workspace_root = path.resolve() if path else None
        logger.info(f"Workspace root set to: {self._workspace_root}")

    @property
    def initialization_options(self) -> Optional[InitializationOptions]:
        return self._initialization_options

    def set_initialization_options(self, options: Dict[str, Any]) -> None:
        """
        Apply initialization options.

        A relative `lint_config_file` is resolved against the workspace root.

        Raises:
            OSError, ValueError: If the named lint configuration cannot be loaded
        """
        self._initialization_options = InitializationOptions.from_dict(options)
        logger.info(f"Initialization options set: {self._initialization_options}")

        logging.getLogger().setLevel(self._initialization_options.log_level.to_logging())

        config_file = self._initialization_options.lint_config_file
        if config_file:
            if not config_file.is_absolute() and self._workspace_root:
                config_file = self._workspace_root / config_file
            self.load_lint_config(config_file)

    def load_lint_config(self, path: Path) -> None:
        """
        Load lint configuration from a JSON file.

        The format is:
        {
          "enabled_rules": ["<rule id>"],
          "disabled_rules": ["<rule id>"],
          "rule_configs": {"<rule id>": {"level": "error", "<setting>": <value>}}
        }

        Args:
            path: Path to the lint config JSON file
        """
        try:
            data = json.loads(Path(path).read_text(encoding='utf-8'))
            self._lint_config = LintConfig.from_dict(data)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load lint config from {path}: {e}")
            raise
        logger.info(f"Loaded lint config from {path}: {self._lint_config}")

    @property
    def lint_config(self) -> Optional[LintConfig]:
        """The loaded lint configuration, or None to run the default rule set."""
        return self._lint_config

    @lint_config.setter
    def lint_config(self, lint_config: Optional[LintConfig]) -> None:
        self._lint_config = lint_config

    def is_linting_enabled(self) -> bool:
        """Check if linting is enabled."""
        if self._initialization_options:
            return self._initialization_options.linting_enabled
        return True

    def get_max_diagnostics_per_file(self) -> int:
        if self._initialization_options:
            return self._initialization_options.max_diagnostics_per_file
        return DEFAULT_MAX_DIAGNOSTICS

    def is_best_effort(self) -> bool:
        """Check whether lexing continues past a LexError."""
        if self._initialization_options:
            return self._initialization_options.best_effort
        return False

    def clear(self) -> None:
        """Clear all configuration."""
        self._lint_config = None
        self._initialization_options = None
        self._workspace_root = None
        logger.debug("Configuration cleared")
