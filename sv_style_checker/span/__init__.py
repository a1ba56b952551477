"""
Span utilities for tracking positions and ranges in (System)Verilog source.

Positions are 1-based in both line and column, which is what terminal output and
editors display. Conversion to the 0-based LSP convention happens in lsp_data.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, order=True)
class Position:
    """A 1-based position in a text document."""
    line: int
    column: int

    def __post_init__(self):
        if self.line < 1 or self.column < 1:
            raise ValueError(f"Invalid position: line={self.line}, column={self.column}")

    def to_zero_based(self) -> Tuple[int, int]:
        """Return (line, column) counted from zero."""
        return self.line - 1, self.column - 1

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Range:
    """A range in a text document. The end position is exclusive."""
    start: Position
    end: Position

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Invalid range: start={self.start} > end={self.end}")

    def contains_position(self, position: Position) -> bool:
        """Check if this range contains the given position."""
        return self.start <= position < self.end or position == self.start

    @property
    def is_multiline(self) -> bool:
        return self.end.line > self.start.line

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class Span:
    """A span represents a location in source code with file information."""
    file_path: Optional[str]
    range: Range

    @property
    def start(self) -> Position:
        """Get the start position of this span."""
        return self.range.start

    @property
    def end(self) -> Position:
        """Get the end position of this span."""
        return self.range.end

    @property
    def line(self) -> int:
        return self.range.start.line

    @property
    def column(self) -> int:
        return self.range.start.column

    def contains_position(self, position: Position) -> bool:
        """Check if this span contains the given position."""
        return self.range.contains_position(position)

    def __str__(self) -> str:
        file_part = f"{self.file_path}:" if self.file_path else ""
        return f"{file_part}{self.range}"


__all__ = [
    "Position",
    "Range",
    "Span",
]
