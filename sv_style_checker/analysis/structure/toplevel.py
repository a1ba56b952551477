"""
Top-level structure: modules, procedures and the per-module source tree.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from ...span import Position, Span
from ..parsing.lexer import Token
from .declarations import Port, SignalDeclaration, TypeDefinition
from .expressions import Expression
from .statements import Assignment, Block, BlockKind


class ProcedureKind(Enum):
    """Kinds of always procedures."""
    ALWAYS = "always"
    ALWAYS_COMB = "always_comb"
    ALWAYS_FF = "always_ff"
    ALWAYS_LATCH = "always_latch"

    @property
    def block_kind(self) -> BlockKind:
        return BlockKind(self.value)


@dataclass(frozen=True)
class EdgeEvent:
    """One event of a sensitivity list, e.g. ``posedge clk_i``."""
    edge: Optional[str]
    signal: Expression
    span: Span

    @property
    def name(self) -> Optional[str]:
        token = self.signal.single_identifier()
        return token.text if token is not None else None

    @property
    def is_reset_like(self) -> bool:
        name = (self.name or '').lower()
        return 'rst' in name or 'reset' in name


@dataclass(frozen=True)
class SensitivityList:
    """Event control of a procedure: ``@(...)``, ``@*`` or ``@(*)``."""
    events: Tuple[EdgeEvent, ...]
    separators: Tuple[Token, ...]
    span: Span
    is_star: bool = False

    @property
    def edges(self) -> List[EdgeEvent]:
        return [event for event in self.events if event.edge is not None]


@dataclass(frozen=True)
class Procedure:
    """An always, always_comb, always_ff or always_latch procedure."""
    kind: ProcedureKind
    body: Block
    span: Span
    keyword_span: Span
    sensitivity: Optional[SensitivityList] = None


@dataclass(frozen=True)
class ContinuousAssign:
    """An ``assign`` item; one item may carry several comma-separated assignments."""
    assignments: Tuple[Assignment, ...]
    span: Span


@dataclass(frozen=True)
class FunctionDeclaration:
    """A function whose body is parsed into a FUNCTION block."""
    name: str
    body: Block
    span: Span


@dataclass(frozen=True)
class OpaqueRegion:
    """A construct retained as a token span only (generate, instances, tasks, ...)."""
    keyword: str
    span: Span


ModuleItem = Union[Procedure, ContinuousAssign, FunctionDeclaration, OpaqueRegion, Block]


@dataclass(frozen=True)
class ModuleDeclaration:
    """A module with its header, declarations and items."""
    name: str
    name_span: Span
    span: Span
    keyword_span: Span
    header_end: Position
    guards: Tuple[str, ...] = ()
    imports: Tuple[str, ...] = ()
    parameters: Tuple[SignalDeclaration, ...] = ()
    ports: Tuple[Port, ...] = ()
    declarations: Tuple[SignalDeclaration, ...] = ()
    typedefs: Tuple[TypeDefinition, ...] = ()
    items: Tuple[ModuleItem, ...] = ()
    ansi_ports: bool = True

    @property
    def procedures(self) -> List[Procedure]:
        return [item for item in self.items if isinstance(item, Procedure)]

    @property
    def continuous_assigns(self) -> List[Assignment]:
        return [assignment for item in self.items if isinstance(item, ContinuousAssign)
                for assignment in item.assignments]

    @property
    def functions(self) -> List[FunctionDeclaration]:
        return [item for item in self.items if isinstance(item, FunctionDeclaration)]

    def signals(self) -> Iterator[SignalDeclaration]:
        """Every declared name: ports, parameters, then body declarations."""
        yield from self.ports
        yield from self.parameters
        yield from self.declarations

    def signal(self, name: str) -> Optional[SignalDeclaration]:
        for declaration in self.signals():
            if declaration.name == name:
                return declaration
        return None

    def blocks(self) -> Iterator[Block]:
        """Every block in procedures, functions and module-level begin/end regions."""
        for item in self.items:
            if isinstance(item, (Procedure, FunctionDeclaration)):
                yield from item.body.blocks()
            elif isinstance(item, Block):
                yield from item.blocks()


@dataclass(frozen=True)
class SourceFile:
    """
    Structural tree for one module of a file.

    All trees of a file share the full token sequence; each owns the disjoint slice
    ``tokens[token_start:token_end]`` so token-level rules visit every line exactly once.
    A file without modules yields a single tree whose ``module`` is None.
    """
    file_path: Optional[str]
    tokens: Tuple[Token, ...]
    token_start: int
    token_end: int
    module: Optional[ModuleDeclaration] = None
    typedefs: Tuple[TypeDefinition, ...] = ()

    @property
    def own_tokens(self) -> Tuple[Token, ...]:
        return self.tokens[self.token_start:self.token_end]

    def owns(self, position: Position) -> bool:
        """True when position falls inside this tree's token slice."""
        if self.token_start >= self.token_end or self.token_start >= len(self.tokens):
            return False
        if position < self.tokens[self.token_start].span.start:
            return False
        return self.token_end >= len(self.tokens) or position < self.tokens[self.token_end].span.start

    def all_typedefs(self) -> List[TypeDefinition]:
        """Module typedefs shadow file-scope ones."""
        local = list(self.module.typedefs) if self.module is not None else []
        return local + list(self.typedefs)

    def lookup_type(self, name: str) -> Optional[TypeDefinition]:
        for typedef in self.all_typedefs():
            if typedef.name == name:
                return typedef
        return None

    def signal(self, name: str) -> Optional[SignalDeclaration]:
        if self.module is None:
            return None
        return self.module.signal(name)

    def width_of(self, name: str) -> Optional[int]:
        """Declared packed width of a signal, or None when unknown."""
        declaration = self.signal(name)
        if declaration is None or declaration.unpacked_dimensions:
            return None
        width = declaration.packed_width
        if width is None and declaration.type_keyword is not None:
            typedef = self.lookup_type(declaration.type_keyword)
            if typedef is not None and typedef.base_width is not None \
                    and not declaration.packed_dimensions:
                return typedef.base_width
        return width

    def is_single_bit(self, name: str) -> bool:
        return self.width_of(name) == 1


__all__ = [
    "ProcedureKind",
    "EdgeEvent",
    "SensitivityList",
    "Procedure",
    "ContinuousAssign",
    "FunctionDeclaration",
    "OpaqueRegion",
    "ModuleItem",
    "ModuleDeclaration",
    "SourceFile",
]
