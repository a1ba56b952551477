"""
Procedural statement structure for (System)Verilog analysis.

Statements are tagged variants: every variant carries a class-level ``kind`` so rules
can dispatch on it without an inheritance hierarchy.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterator, List, Optional, Tuple, Union

from ...span import Position, Span
from ..parsing.lexer import TokenKind
from .expressions import Expression


class BlockKind(Enum):
    """Parent construct of a block."""
    MODULE = "module"
    ALWAYS = "always"
    ALWAYS_COMB = "always_comb"
    ALWAYS_FF = "always_ff"
    ALWAYS_LATCH = "always_latch"
    IF = "if"
    ELSE = "else"
    CASE = "case"
    CASE_ITEM = "case-item"
    BARE = "begin-end-bare"
    FUNCTION = "function"
    LOOP = "loop"


# Contexts whose bodies are closed by their own end keyword
NEVER_DELIMITED = frozenset({BlockKind.MODULE, BlockKind.CASE, BlockKind.FUNCTION})


class StatementKind(Enum):
    """Types of procedural statements."""
    ASSIGNMENT = "assignment"
    CONDITIONAL = "conditional"
    CASE = "case"
    NESTED_BLOCK = "nested-block"
    LOOP = "loop"
    OPAQUE = "opaque"


class AssignOp(Enum):
    """Assignment operator discipline."""
    BLOCKING = "blocking"
    NONBLOCKING = "nonblocking"
    CONTINUOUS = "continuous"


@dataclass(frozen=True)
class LValue:
    """Left-hand side of an assignment."""
    expression: Expression

    @property
    def names(self) -> Tuple[str, ...]:
        """Base signal names written, ignoring index expressions and struct members."""
        names = []
        depth = 0
        previous = None
        for token in self.expression.tokens:
            if token.is_op('['):
                depth += 1
            elif token.is_op(']'):
                depth = max(0, depth - 1)
            elif (depth == 0 and token.kind is TokenKind.IDENTIFIER
                  and not (previous is not None and previous.is_op('.', '::'))
                  and token.text not in names):
                names.append(token.text)
            previous = token
        return tuple(names)

    @property
    def base_name(self) -> Optional[str]:
        names = self.names
        return names[0] if len(names) == 1 else None

    @property
    def span(self) -> Span:
        return self.expression.span


@dataclass(frozen=True)
class Assignment:
    """A blocking, nonblocking or continuous assignment."""
    kind: ClassVar[StatementKind] = StatementKind.ASSIGNMENT
    target: LValue
    op: AssignOp
    operator: str
    value: Expression
    span: Span
    operator_span: Span


@dataclass(frozen=True)
class Conditional:
    """An if statement with an optional else branch.

    An ``else if`` chain is an else block holding a single Conditional with
    ``is_else_if`` set.
    """
    kind: ClassVar[StatementKind] = StatementKind.CONDITIONAL
    condition: Expression
    then_block: 'Block'
    else_block: Optional['Block']
    span: Span
    qualifier: Optional[str] = None
    is_else_if: bool = False


@dataclass(frozen=True)
class CaseItem:
    """One arm of a case statement."""
    labels: Tuple[Expression, ...]
    body: 'Block'
    span: Span
    is_default: bool = False

    @property
    def is_empty(self) -> bool:
        return self.body.is_empty


@dataclass(frozen=True)
class CaseStatement:
    """case/casez/casex with an optional unique/unique0/priority qualifier."""
    kind: ClassVar[StatementKind] = StatementKind.CASE
    keyword: str
    subject: Expression
    items: Tuple[CaseItem, ...]
    span: Span
    qualifier: Optional[str] = None
    default_index: Optional[int] = None
    delimited: bool = False

    @property
    def default_item(self) -> Optional[CaseItem]:
        if self.default_index is None:
            return None
        return self.items[self.default_index]

    @property
    def labels(self) -> List[Expression]:
        return [label for item in self.items if not item.is_default for label in item.labels]


@dataclass(frozen=True)
class NestedBlock:
    """A bare begin/end block inside a procedure."""
    kind: ClassVar[StatementKind] = StatementKind.NESTED_BLOCK
    block: 'Block'

    @property
    def span(self) -> Span:
        return self.block.span


@dataclass(frozen=True)
class Loop:
    """for/while/repeat/foreach/forever/do loop."""
    kind: ClassVar[StatementKind] = StatementKind.LOOP
    keyword: str
    header: Expression
    body: 'Block'
    span: Span


@dataclass(frozen=True)
class OpaqueStatement:
    """A statement kept as tokens only (calls, waits, local declarations, ...)."""
    kind: ClassVar[StatementKind] = StatementKind.OPAQUE
    expression: Expression
    span: Span

    @property
    def text(self) -> str:
        return self.expression.text


Statement = Union[Assignment, Conditional, CaseStatement, NestedBlock, Loop, OpaqueStatement]


@dataclass(frozen=True)
class Block:
    """
    An ordered group of statements under a parent construct.

    ``header_end`` is where the owning construct's header stops (after the condition of
    an ``if``, the ``else`` keyword, the label of a case item, ...); ``begin_span``
    locates the ``begin`` keyword when the block is delimited.
    """
    kind: BlockKind
    delimited: bool
    statements: Tuple[Statement, ...]
    span: Span
    header_end: Position
    begin_span: Optional[Span] = None
    label: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.statements

    @property
    def single_statement(self) -> Optional[Statement]:
        if len(self.statements) == 1:
            return self.statements[0]
        return None

    def walk(self) -> Iterator[Statement]:
        """Depth-first traversal of every statement under this block."""
        for statement in self.statements:
            yield statement
            for child in child_blocks(statement):
                yield from child.walk()

    def blocks(self) -> Iterator['Block']:
        """This block and every block nested under it."""
        yield self
        for statement in self.statements:
            for child in child_blocks(statement):
                yield from child.blocks()

    def assignments(self) -> Iterator[Assignment]:
        for statement in self.walk():
            if statement.kind is StatementKind.ASSIGNMENT:
                yield statement


def child_blocks(statement: Statement) -> List[Block]:
    """Blocks directly owned by a statement."""
    if statement.kind is StatementKind.CONDITIONAL:
        blocks = [statement.then_block]
        if statement.else_block is not None:
            blocks.append(statement.else_block)
        return blocks
    if statement.kind is StatementKind.CASE:
        return [item.body for item in statement.items]
    if statement.kind is StatementKind.NESTED_BLOCK:
        return [statement.block]
    if statement.kind is StatementKind.LOOP:
        return [statement.body]
    return []


__all__ = [
    "BlockKind",
    "NEVER_DELIMITED",
    "StatementKind",
    "AssignOp",
    "LValue",
    "Assignment",
    "Conditional",
    "CaseItem",
    "CaseStatement",
    "NestedBlock",
    "Loop",
    "OpaqueStatement",
    "Statement",
    "Block",
    "child_blocks",
]
