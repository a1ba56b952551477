"""
File management utilities for the (System)Verilog style checker.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)

HDL_SUFFIXES = ('.sv', '.svh', '.v', '.vh')


class FileManager:
    """Discovers HDL source files and reads them for analysis."""

    def is_hdl_file(self, file_path: Path) -> bool:
        """Check whether a path names a (System)Verilog source or header."""
        return file_path.suffix.lower() in HDL_SUFFIXES

    def discover_source_files(self, root_directory: Path, recursive: bool = True) -> List[Path]:
        """
        Discover all HDL files in a directory.

        Args:
            root_directory: Directory to search in
            recursive: Whether to search recursively

        Returns:
            Sorted list of file paths
        """
        source_files: List[Path] = []

        if not root_directory.exists() or not root_directory.is_dir():
            logger.warning(f"Directory does not exist or is not a directory: {root_directory}")
            return source_files

        pattern = "**/*" if recursive else "*"
        for file_path in root_directory.glob(pattern):
            if file_path.is_file() and self.is_hdl_file(file_path):
                source_files.append(file_path)

        source_files.sort()
        logger.info(f"Discovered {len(source_files)} HDL files in {root_directory}")
        return source_files

    def collect(self, paths: Iterable[Path]) -> List[Path]:
        """
        Expand command-line paths into the files to check.

        Files named explicitly are kept whatever their suffix; directories are searched
        recursively. Each file appears once, in first-seen order.

        Raises:
            FileNotFoundError: If a path does not exist
        """
        files: List[Path] = []
        seen = set()
        for path in paths:
            if path.is_dir():
                candidates = self.discover_source_files(path)
            elif path.exists():
                candidates = [path]
            else:
                raise FileNotFoundError(f"No such file or directory: {path}")
            for candidate in candidates:
                key = candidate.resolve()
                if key not in seen:
                    seen.add(key)
                    files.append(candidate)
        return files

    def read_file(self, file_path: Path) -> str:
        """
        Read a source file.

        Undecodable bytes are replaced so that a stray character surfaces as a lex
        error instead of aborting the whole run.
        """
        with open(file_path, 'r', encoding='utf-8', errors='replace', newline='') as f:
            return f.read()


__all__ = [
    "FileManager",
    "HDL_SUFFIXES",
]
