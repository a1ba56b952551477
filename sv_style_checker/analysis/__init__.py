"""
Analysis module for the (System)Verilog style checker.

Runs the lexer and structural parser over source text and coordinates linting of
many files in parallel. Each file is processed independently: no state is shared
between workers beyond the read-only rule set.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .types import (
    AnalysisError, Diagnostic, DiagnosticSeverity, LexError, ParseError, SuggestedFix,
)
from .parsing import Token, lex, parse
from .structure import SourceFile

logger = logging.getLogger(__name__)

Checker = Callable[[SourceFile, Sequence[Token]], List[Diagnostic]]


class FileAnalysis:
    """Lexing and structural parsing of a single file."""

    def __init__(self, file_path: Optional[Union[Path, str]], content: str, best_effort: bool = False):
        self.file_path = str(file_path) if file_path is not None else None
        self.content = content
        self.best_effort = best_effort

        self.tokens: Tuple[Token, ...] = ()
        self.trees: List[SourceFile] = []
        self.lex_error: Optional[LexError] = None
        self.parse_errors: List[ParseError] = []

        self._analyze()

    def _analyze(self) -> None:
        self.tokens, self.lex_error = lex(self.content, self.file_path, self.best_effort)
        if self.lex_error is not None and not self.best_effort:
            logger.info(f"Skipping {self.file_path or '<text>'}: {self.lex_error}")
            return

        self.trees, self.parse_errors = parse(self.tokens, self.file_path)
        logger.debug(f"Analyzed {self.file_path or '<text>'}: {len(self.tokens)} tokens, "
                     f"{len(self.trees)} tree(s), {len(self.parse_errors)} parse error(s)")

    @property
    def skipped(self) -> bool:
        """True when a LexError stopped processing of this file."""
        return self.lex_error is not None and not self.best_effort

    @property
    def errors(self) -> List[AnalysisError]:
        errors: List[AnalysisError] = []
        if self.lex_error is not None:
            errors.append(self.lex_error)
        errors.extend(self.parse_errors)
        return errors

    def get_diagnostics(self) -> List[Diagnostic]:
        """Lex and parse failures as error-severity diagnostics."""
        return [error.to_diagnostic() for error in self.errors]


class StyleAnalysis:
    """Parallel analysis of many files; each worker owns one file for its lifetime."""

    def __init__(self, checker: Checker, best_effort: bool = False, max_workers: Optional[int] = None):
        self.checker = checker
        self.best_effort = best_effort
        self.max_workers = max_workers

    def analyze_file(self, file_path: Optional[Union[Path, str]], content: str) -> List[Diagnostic]:
        """
        Analyze a single file.

        Args:
            file_path: Path reported in diagnostics
            content: Source text

        Returns:
            Analysis and rule diagnostics for the file
        """
        analysis = FileAnalysis(file_path, content, self.best_effort)
        diagnostics = analysis.get_diagnostics()
        if analysis.skipped:
            return diagnostics

        for tree in analysis.trees:
            diagnostics.extend(self.checker(tree, analysis.tokens))
        return diagnostics

    def analyze_sources(self, sources: Dict[str, str]) -> Dict[str, List[Diagnostic]]:
        """Analyze in-memory sources concurrently, keyed by path."""
        paths = list(sources)
        if not paths:
            return {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = executor.map(lambda path: self.analyze_file(path, sources[path]), paths)
            return dict(zip(paths, results))


# Export main classes
__all__ = [
    "FileAnalysis",
    "StyleAnalysis",
    "AnalysisError",
    "Diagnostic",
    "DiagnosticSeverity",
    "LexError",
    "ParseError",
    "SuggestedFix",
    "lex",
    "parse",
]
