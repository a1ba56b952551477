"""
Command line interface for the (System)Verilog style checker.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import Config
from .file_management import FileManager
from .analysis import StyleAnalysis
from .analysis.types import Diagnostic, DiagnosticSeverity
from .lint import LintEngine


logger = logging.getLogger(__name__)

# Rule ids produced by analysis rather than by lint rules
ANALYSIS_RULE_IDS = ('parse_error', 'lex_error')


def aggregate(results: Dict[str, List[Diagnostic]],
              min_severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
              disabled_rules: Iterable[str] = ()) -> List[Diagnostic]:
    """
    Collapse duplicates and filter per-file results.

    Diagnostics keep their location and message; files keep the order they were given
    in, and diagnostics within a file are ordered by (line, column, rule id).
    """
    disabled = set(disabled_rules)
    seen = set()
    diagnostics: List[Diagnostic] = []
    for path in results:
        for diagnostic in sorted(results[path], key=lambda d: d.sort_key):
            if diagnostic.rule_id in disabled or diagnostic.severity.rank > min_severity.rank:
                continue
            if diagnostic.identity in seen:
                continue
            seen.add(diagnostic.identity)
            diagnostics.append(diagnostic)
    return diagnostics


def build_engine(lint_cfg_path: Optional[Path] = None,
                 disabled_rules: Sequence[str] = ()) -> LintEngine:
    """
    Create a lint engine from an optional JSON configuration and --disable flags.

    Raises:
        OSError, ValueError: If the configuration cannot be loaded
    """
    config = Config()
    if lint_cfg_path:
        config.load_lint_config(lint_cfg_path)
    engine = LintEngine(config)

    for name in disabled_rules:
        rule = engine.get_rule(name)
        if rule is not None:
            rule.enabled = False
        elif name not in ANALYSIS_RULE_IDS:
            logger.warning(f"Unknown rule passed to --disable: {name}")
    return engine


def run_cli(
    paths: Sequence[Path],
    lint_cfg_path: Optional[Path] = None,
    output_format: str = 'text',
    min_severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
    disabled_rules: Sequence[str] = (),
    jobs: Optional[int] = None,
    best_effort: bool = False,
) -> int:
    """
    Run the style checker in command line mode.

    Args:
        paths: Files and directories to check
        lint_cfg_path: Optional path to lint configuration file
        output_format: 'text' or 'json'
        min_severity: Least severe diagnostic to report
        disabled_rules: Rule ids to turn off
        jobs: Number of worker threads (None lets the pool decide)
        best_effort: Keep lexing past lex errors

    Returns:
        Exit code (1 if any error-severity diagnostic remains, else 0)
    """
    logger.debug("Running style checker in CLI mode")

    engine = build_engine(lint_cfg_path, disabled_rules)
    file_manager = FileManager()
    files = file_manager.collect(paths)

    if not files:
        logger.warning("No HDL files found")

    sources: Dict[str, str] = {}
    unreadable = 0
    for source_file in files:
        try:
            sources[str(source_file)] = file_manager.read_file(source_file)
        except OSError as e:
            logger.error(f"Failed to read {source_file}: {e}")
            unreadable += 1

    logger.info(f"Checking {len(sources)} file(s)")
    analysis = StyleAnalysis(engine.check, best_effort=best_effort, max_workers=jobs)
    results = analysis.analyze_sources(sources)
    diagnostics = aggregate(results, min_severity, disabled_rules)

    errors = sum(1 for d in diagnostics if d.severity is DiagnosticSeverity.ERROR)
    warnings = len(diagnostics) - errors

    if output_format == 'json':
        print(json.dumps([diagnostic.to_dict() for diagnostic in diagnostics], indent=2))
    else:
        for diagnostic in diagnostics:
            print(diagnostic.format())
        # Print summary
        if diagnostics:
            print(f"\nSummary: {errors} errors, {warnings} warnings in {len(sources)} files")
        else:
            print(f"\nAll {len(sources)} files checked successfully")

    return 1 if errors > 0 or unreadable > 0 else 0


def list_rules(lint_cfg_path: Optional[Path] = None) -> int:
    """Print every rule with its level and whether it is enabled."""
    engine = build_engine(lint_cfg_path)
    info = engine.get_rule_info()
    width = max(len(name) for name in info)
    for name, details in info.items():
        state = details['level'] if details['enabled'] else 'disabled'
        print(f"{name:<{width}}  {state:<8}  {details['description']}")
    return 0


def analyze_single_file(file_path: Path, content: Optional[str] = None,
                        engine: Optional[LintEngine] = None) -> List[Diagnostic]:
    """
    Check one file and return its diagnostics without printing.

    Args:
        file_path: Path reported in diagnostics (read from disk when content is None)
        content: Optional in-memory content
        engine: Optional configured engine

    Returns:
        Sorted diagnostics for the file
    """
    if engine is None:
        engine = LintEngine()
    if content is None:
        content = FileManager().read_file(file_path)
    return aggregate({str(file_path): engine.lint_file(file_path, content)})


__all__ = [
    "aggregate",
    "build_engine",
    "run_cli",
    "list_rules",
    "analyze_single_file",
]
