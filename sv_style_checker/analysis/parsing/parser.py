"""
Structural parser for (System)Verilog.

Builds one SourceFile tree per module from a token sequence. The parser recognizes
module headers, declarations, continuous assignments, always procedures and their
statements; everything else (generate regions, instances, tasks, classes, assertions)
is retained as opaque regions.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Sequence, Tuple

from ...span import Position, Range, Span
from ..structure.declarations import (
    Dimension, Port, PortDirection, SignalDeclaration, SignalKind, TypeDefinition, TypeKind,
    packed_width_of,
)
from ..structure.expressions import CLOSERS, OPENERS, Expression
from ..structure.statements import (
    Assignment, AssignOp, Block, BlockKind, CaseItem, CaseStatement, Conditional, LValue,
    Loop, NestedBlock, OpaqueStatement, Statement, StatementKind,
)
from ..structure.toplevel import (
    ContinuousAssign, EdgeEvent, FunctionDeclaration, ModuleDeclaration, ModuleItem,
    OpaqueRegion, Procedure, ProcedureKind, SensitivityList, SourceFile,
)
from ..types import ParseError
from .lexer import Token, TokenKind

logger = logging.getLogger(__name__)


DATA_TYPE_KEYWORDS = frozenset("""
    logic wire reg bit byte shortint int integer longint time real realtime shortreal
    string tri tri0 tri1 triand trior trireg uwire wand wor supply0 supply1 event chandle
""".split())

PROCEDURE_KEYWORDS = {
    'always': ProcedureKind.ALWAYS,
    'always_comb': ProcedureKind.ALWAYS_COMB,
    'always_ff': ProcedureKind.ALWAYS_FF,
    'always_latch': ProcedureKind.ALWAYS_LATCH,
}

DIRECTIONS = {
    'input': PortDirection.INPUT,
    'output': PortDirection.OUTPUT,
    'inout': PortDirection.INOUT,
    'ref': PortDirection.INOUT,
}

# Tokens the parser synchronizes on after a ParseError
SYNC_KEYWORDS = frozenset({'module', 'macromodule', 'endmodule'} | set(PROCEDURE_KEYWORDS))

# Keywords that cannot appear inside a procedural statement
STATEMENT_BREAKERS = SYNC_KEYWORDS | {
    'end', 'endcase', 'endfunction', 'endtask', 'endgenerate', 'endpackage', 'begin',
    'else', 'initial', 'final', 'function', 'task', 'generate',
}

# Constructs skipped wholesale up to their closing keyword
END_KEYWORDS = {
    'interface': 'endinterface',
    'class': 'endclass',
    'program': 'endprogram',
    'checker': 'endchecker',
    'primitive': 'endprimitive',
    'config': 'endconfig',
    'covergroup': 'endgroup',
    'property': 'endproperty',
    'sequence': 'endsequence',
    'clocking': 'endclocking',
    'specify': 'endspecify',
    'generate': 'endgenerate',
    'task': 'endtask',
    'table': 'endtable',
}

OPAQUE_STATEMENT_KEYWORDS = DATA_TYPE_KEYWORDS | {
    'return', 'break', 'continue', 'disable', 'wait', 'force', 'release', 'assign',
    'deassign', 'void', 'assert', 'assume', 'cover', 'expect', 'var', 'const', 'static',
    'automatic', 'typedef', 'parameter', 'localparam', 'input', 'output', 'inout', 'ref',
    'genvar', 'import', 'restrict', 'enum', 'struct', 'union', 'signed', 'unsigned',
    'wait_order', 'randcase', 'let',
}

ASSIGNMENT_OPERATORS = frozenset({
    '=', '<=', '+=', '-=', '*=', '/=', '%=', '&=', '|=', '^=', '<<=', '>>=', '<<<=', '>>>=',
})

GUARD_DIRECTIVES = frozenset({'`ifdef', '`ifndef', '`elsif', '`else', '`endif'})
LINE_DIRECTIVES = frozenset({
    '`define', '`undef', '`include', '`timescale', '`default_nettype', '`resetall',
    '`celldefine', '`endcelldefine', '`line', '`pragma', '`unconnected_drive',
    '`nounconnected_drive', '`begin_keywords', '`end_keywords', '`undefineall',
})

SEQUENCE_LOOP_KEYWORDS = frozenset({'for', 'while', 'repeat', 'foreach', 'forever', 'do'})


def _matching(tokens: Sequence[Token], index: int) -> int:
    """Index of the bracket closing tokens[index], or the last index when unbalanced."""
    depth = 0
    for position in range(index, len(tokens)):
        token = tokens[position]
        if token.kind is TokenKind.OPERATOR and token.text in OPENERS:
            depth += 1
        elif token.kind is TokenKind.OPERATOR and token.text in CLOSERS:
            depth -= 1
            if depth == 0:
                return position
    return len(tokens) - 1


def _split_top(tokens: Sequence[Token], *ops: str) -> Tuple[List[List[Token]], List[Token]]:
    """Split at depth-0 operators (or keywords) in ops; returns (parts, separators)."""
    parts: List[List[Token]] = [[]]
    separators: List[Token] = []
    depth = 0
    for token in tokens:
        if token.kind is TokenKind.OPERATOR and token.text in OPENERS:
            depth += 1
        elif token.kind is TokenKind.OPERATOR and token.text in CLOSERS:
            depth -= 1
        elif depth == 0 and token.text in ops and token.kind in (TokenKind.OPERATOR,
                                                                 TokenKind.KEYWORD):
            separators.append(token)
            parts.append([])
            continue
        parts[-1].append(token)
    return parts, separators


def _find_top(tokens: Sequence[Token], ops) -> int:
    """Index of the first depth-0 operator in ops, or -1."""
    depth = 0
    for index, token in enumerate(tokens):
        if token.kind is not TokenKind.OPERATOR:
            continue
        if token.text in OPENERS:
            depth += 1
        elif token.text in CLOSERS:
            depth -= 1
        elif depth == 0 and token.text in ops:
            return index
    return -1


def _strip_directives(tokens: Sequence[Token]) -> List[Token]:
    """Drop conditional-compilation directives and the macro names they test."""
    result = []
    skip_name = False
    for token in tokens:
        if skip_name:
            skip_name = False
            if token.kind is TokenKind.IDENTIFIER:
                continue
        if token.kind is TokenKind.DIRECTIVE and token.text in GUARD_DIRECTIVES:
            skip_name = token.text in ('`ifdef', '`ifndef', '`elsif')
            continue
        result.append(token)
    return result


def _skip_attributes(tokens: Sequence[Token], index: int) -> int:
    while index < len(tokens) and tokens[index].is_op('(*'):
        while index < len(tokens) and not tokens[index].is_op('*)'):
            index += 1
        index += 1
    return index


class _Head(NamedTuple):
    """Shared leading part of a declaration, inherited by following ANSI ports."""
    direction: Optional[PortDirection]
    direction_token: Optional[Token]
    type_keyword: Optional[str]
    type_token: Optional[Token]
    packed: Tuple[Dimension, ...]
    signed: bool


@dataclass
class _ModuleBuilder:
    """Mutable state collected while parsing one module."""
    parameters: List[SignalDeclaration] = field(default_factory=list)
    ports: List[Port] = field(default_factory=list)
    port_order: List[str] = field(default_factory=list)
    declarations: List[SignalDeclaration] = field(default_factory=list)
    typedefs: List[TypeDefinition] = field(default_factory=list)
    items: List[ModuleItem] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    ansi_ports: bool = True


class SVParser:
    """Parser producing per-module structural trees from (System)Verilog tokens."""

    def __init__(self, tokens: Sequence[Token], file_path: Optional[str] = None):
        self.all_tokens = tuple(tokens)
        if file_path is None and self.all_tokens:
            file_path = self.all_tokens[0].span.file_path
        self.file_path = file_path
        self.raw_index: List[int] = [index for index, token in enumerate(self.all_tokens)
                                     if not token.is_trivia]
        self.tokens: List[Token] = [self.all_tokens[index] for index in self.raw_index]
        if not self.tokens or self.tokens[-1].kind is not TokenKind.EOF:
            end = self.all_tokens[-1].end if self.all_tokens else Position(1, 1)
            offset = (self.all_tokens[-1].offset + len(self.all_tokens[-1].text)
                      if self.all_tokens else 0)
            self.tokens.append(Token(TokenKind.EOF, '', Span(file_path, Range(end, end)), offset))
            self.raw_index.append(len(self.all_tokens))
        self.position = 0
        self.errors: List[ParseError] = []
        self.guards: List[str] = []
        self.file_typedefs: List[TypeDefinition] = []

    def parse(self) -> Tuple[List[SourceFile], List[ParseError]]:
        """
        Parse the token sequence.

        Returns:
            One SourceFile per module (or a single module-less tree) and the recoverable
            errors found along the way.
        """
        modules: List[Tuple[ModuleDeclaration, int]] = []

        while not self._is_at_end():
            start = self.position
            try:
                token = self._current_token()
                if token.is_keyword('module', 'macromodule'):
                    module = self._parse_module()
                    if module is not None:
                        modules.append((module, self.raw_index[start]))
                elif token.kind is TokenKind.DIRECTIVE:
                    self._parse_directive()
                elif token.is_keyword('package'):
                    self._parse_package()
                elif token.is_keyword('typedef'):
                    self.file_typedefs.extend(self._parse_typedef())
                elif token.is_keyword('function'):
                    self._skip_to_end_keyword('function', 'endfunction')
                elif token.kind is TokenKind.KEYWORD and token.text in END_KEYWORDS:
                    self._skip_to_end_keyword(token.text, END_KEYWORDS[token.text])
                else:
                    self._skip_to_semicolon()
            except ParseError as error:
                self._record(error)
                self._synchronize(start)

        trees = self._build_trees(modules)
        self.errors.sort(key=lambda error: (error.line, error.column))
        logger.debug(f"Parsed {len(modules)} module(s) from {self.file_path or '<text>'} "
                     f"with {len(self.errors)} error(s)")
        return trees, self.errors

    def _build_trees(self, modules: List[Tuple[ModuleDeclaration, int]]) -> List[SourceFile]:
        typedefs = tuple(self.file_typedefs)
        total = len(self.all_tokens)
        if not modules:
            return [SourceFile(self.file_path, self.all_tokens, 0, total, None, typedefs)]

        trees = []
        for index, (module, _) in enumerate(modules):
            start = 0 if index == 0 else modules[index][1]
            end = modules[index + 1][1] if index + 1 < len(modules) else total
            trees.append(SourceFile(self.file_path, self.all_tokens, start, end, module, typedefs))
        return trees

    # Modules

    def _parse_module(self) -> Optional[ModuleDeclaration]:
        keyword = self._advance()
        guards = tuple(self.guards)
        self._accept_keyword('static', 'automatic')

        name_token = self._current_token()
        if name_token.kind is not TokenKind.IDENTIFIER:
            self._record(ParseError(f"Expected module name after '{keyword.text}'", name_token.span))
            self._synchronize()
            if self._current_token().is_keyword('endmodule'):
                self._advance()
            return None
        self._advance()

        builder = _ModuleBuilder()
        try:
            self._parse_module_header(builder)
        except ParseError as error:
            self._record(error)
            self._synchronize()
        header_end = self._previous().end

        while not self._is_at_end():
            token = self._current_token()
            if token.is_keyword('endmodule'):
                break
            if token.is_keyword('module', 'macromodule'):
                self._record(ParseError(f"Missing 'endmodule' for module '{name_token.text}'",
                                        name_token.span))
                break
            start = self.position
            try:
                self._parse_module_item(builder)
            except ParseError as error:
                self._record(error)
                self._synchronize(start)
        else:
            self._record(ParseError(f"Missing 'endmodule' for module '{name_token.text}'",
                                    name_token.span))

        if self._current_token().is_keyword('endmodule'):
            self._advance()
            self._accept_label()

        return ModuleDeclaration(
            name=name_token.text,
            name_span=name_token.span,
            span=self._span(keyword, self._previous()),
            keyword_span=keyword.span,
            header_end=header_end,
            guards=guards,
            imports=tuple(builder.imports),
            parameters=tuple(builder.parameters),
            ports=tuple(self._ordered_ports(builder)),
            declarations=tuple(builder.declarations),
            typedefs=tuple(builder.typedefs),
            items=tuple(builder.items),
            ansi_ports=builder.ansi_ports,
        )

    @staticmethod
    def _ordered_ports(builder: _ModuleBuilder) -> List[Port]:
        if builder.ansi_ports or not builder.port_order:
            return builder.ports
        order = {name: index for index, name in enumerate(builder.port_order)}
        return sorted(builder.ports, key=lambda port: order.get(port.name, len(order)))

    def _parse_module_header(self, builder: _ModuleBuilder) -> None:
        while self._current_token().is_keyword('import'):
            builder.imports.extend(self._parse_import())

        if self._accept_op('#'):
            self._expect_op('(', "Expected '(' after '#' in module parameter list")
            tokens = self._collect_balanced_until(')')
            self._expect_op(')', "Expected ')' to close the module parameter list")
            builder.parameters.extend(self._parse_parameter_list(tokens))

        if self._current_token().is_op('('):
            self._advance()
            tokens = self._collect_balanced_until(')')
            self._expect_op(')', "Expected ')' to close the module port list")
            self._parse_port_list(tokens, builder)

        self._expect_op(';', "Expected ';' after module header")

    def _parse_import(self) -> List[str]:
        self._advance()
        tokens = self._collect_until(';')
        self._expect_op(';', "Expected ';' after import")
        return [token.text for index, token in enumerate(tokens[:-1])
                if token.kind is TokenKind.IDENTIFIER and tokens[index + 1].is_op('::')]

    def _parse_parameter_list(self, tokens: List[Token]) -> List[SignalDeclaration]:
        parameters: List[SignalDeclaration] = []
        kind = SignalKind.PARAMETER
        head: Optional[_Head] = None
        parts, _ = _split_top(_strip_directives(tokens), ',')
        for part in parts:
            if not part:
                continue
            if part[0].is_keyword('parameter', 'localparam'):
                kind = SignalKind(part[0].text)
                head = None
            declarations, head, _ = self._analyze_declaration(part, kind, inherit=head)
            parameters.extend(declarations)
        return parameters

    def _parse_port_list(self, tokens: List[Token], builder: _ModuleBuilder) -> None:
        parts, _ = _split_top(_strip_directives(tokens), ',')
        parts = [part for part in parts if part]
        if not parts:
            return

        first = parts[0][_skip_attributes(parts[0], 0):]
        if len(first) == 1 and first[0].kind is TokenKind.IDENTIFIER:
            # Non-ANSI header: directions come from body declarations
            builder.ansi_ports = False
            builder.port_order = [part[-1].text for part in parts
                                  if part[-1].kind is TokenKind.IDENTIFIER]
            return

        head: Optional[_Head] = None
        for part in parts:
            declarations, head, typedefs = self._analyze_declaration(
                part, SignalKind.INTERNAL, inherit=head)
            builder.typedefs.extend(typedefs)
            builder.ports.extend(declaration for declaration in declarations
                                 if isinstance(declaration, Port))

    # Module items

    def _parse_module_item(self, builder: _ModuleBuilder) -> None:
        token = self._current_token()

        if token.kind is TokenKind.DIRECTIVE:
            item = self._parse_directive()
            if item is not None:
                builder.items.append(item)
        elif token.is_op(';'):
            self._advance()
        elif token.is_op('(*'):
            self._skip_attribute()
        elif token.kind is TokenKind.KEYWORD and token.text in PROCEDURE_KEYWORDS:
            builder.items.append(self._parse_procedure())
        elif token.is_keyword('assign'):
            builder.items.append(self._parse_continuous_assign())
        elif token.is_keyword('input', 'output', 'inout', 'ref'):
            tokens = self._collect_declaration()
            declarations, _, typedefs = self._analyze_declaration(tokens, SignalKind.INTERNAL)
            builder.typedefs.extend(typedefs)
            builder.ports.extend(declaration for declaration in declarations
                                 if isinstance(declaration, Port))
        elif token.is_keyword('parameter', 'localparam'):
            tokens = self._collect_declaration()
            declarations, _, _ = self._analyze_declaration(tokens, SignalKind(token.text))
            builder.parameters.extend(declarations)
        elif token.is_keyword('typedef'):
            builder.typedefs.extend(self._parse_typedef())
        elif token.is_keyword('import'):
            builder.imports.extend(self._parse_import())
        elif token.is_keyword('function'):
            builder.items.append(self._parse_function())
        elif token.is_keyword('begin'):
            builder.items.append(self._parse_module_block(builder))
        elif self._starts_declaration():
            tokens = self._collect_declaration()
            declarations, _, typedefs = self._analyze_declaration(tokens, SignalKind.INTERNAL)
            builder.typedefs.extend(typedefs)
            builder.declarations.extend(declarations)
        else:
            builder.items.append(self._parse_opaque_item())

    def _starts_declaration(self) -> bool:
        token = self._current_token()
        if token.kind is TokenKind.KEYWORD:
            return token.text in DATA_TYPE_KEYWORDS or token.text in (
                'var', 'const', 'enum', 'struct', 'union', 'signed', 'unsigned')
        if token.kind is not TokenKind.IDENTIFIER:
            return False
        # user_t [::name] [dims] name ... but not an instance "mod_t inst (" or "mod_t #("
        index = self.position + 1
        if self.tokens[index].is_op('::'):
            index += 2
        while index < len(self.tokens) and self.tokens[index].is_op('['):
            index = self._matching_position(index) + 1
        if index + 1 >= len(self.tokens):
            return False
        return (self.tokens[index].kind is TokenKind.IDENTIFIER
                and not self.tokens[index + 1].is_op('('))

    def _parse_opaque_item(self) -> OpaqueRegion:
        start = self._current_token()
        if start.kind is TokenKind.KEYWORD and start.text in END_KEYWORDS:
            self._skip_to_end_keyword(start.text, END_KEYWORDS[start.text])
        elif start.is_keyword('initial', 'final', 'if', 'for', 'case', 'casez', 'casex'):
            self._skip_generate_item()
        else:
            self._skip_to_semicolon()
        return OpaqueRegion(start.text, self._span(start, self._previous()))

    def _parse_module_block(self, builder: _ModuleBuilder) -> Block:
        """A begin/end region directly in a module body; its items still count."""
        begin = self._advance()
        label = self._accept_label()
        item_count = len(builder.items)
        while not self._current_token().is_keyword('end'):
            if self._is_at_end() or self._current_token().is_keyword('endmodule', 'module'):
                raise ParseError(f"Missing 'end' for 'begin' at {begin.span.start}", begin.span)
            self._parse_module_item(builder)
        end = self._advance()
        self._accept_label()
        statements = tuple(assignment for item in builder.items[item_count:]
                           if isinstance(item, ContinuousAssign)
                           for assignment in item.assignments)
        return Block(BlockKind.MODULE, True, statements, self._span(begin, end),
                     begin.span.start, begin.span, label)

    def _parse_continuous_assign(self) -> ContinuousAssign:
        keyword = self._advance()
        if self._current_token().is_op('('):
            # Drive strength
            self._skip_balanced()
        self._skip_delay()
        tokens = self._collect_until(';')
        semicolon = self._expect_op(';', "Expected ';' after continuous assignment")

        assignments = []
        parts, _ = _split_top(tokens, ',')
        for part in parts:
            if not part:
                continue
            index = _find_top(part, ('=',))
            if index <= 0:
                raise ParseError("Expected '=' in continuous assignment", part[0].span)
            end_token = semicolon if part is parts[-1] else part[-1]
            assignments.append(Assignment(
                target=LValue(self._expression(part[:index], part[index])),
                op=AssignOp.CONTINUOUS,
                operator='=',
                value=self._expression(part[index + 1:], part[index]),
                span=self._span(part[0], end_token),
                operator_span=part[index].span,
            ))
        return ContinuousAssign(tuple(assignments), self._span(keyword, semicolon))

    # Procedures

    def _parse_procedure(self) -> Procedure:
        keyword = self._advance()
        kind = PROCEDURE_KEYWORDS[keyword.text]
        sensitivity = None
        if self._current_token().is_op('@'):
            sensitivity = self._parse_event_control()

        if kind is ProcedureKind.ALWAYS_FF and (sensitivity is None or not sensitivity.edges):
            raise ParseError("always_ff requires a clock edge in its sensitivity list",
                             sensitivity.span if sensitivity is not None else keyword.span)
        if kind is ProcedureKind.ALWAYS_COMB and sensitivity is not None:
            raise ParseError("always_comb does not take a sensitivity list", sensitivity.span)

        body = self._parse_body(kind.block_kind, self._previous().end)
        return Procedure(kind, body, self._span(keyword, self._previous()), keyword.span,
                         sensitivity)

    def _parse_event_control(self) -> SensitivityList:
        at = self._advance()
        if self._accept_op('*'):
            return SensitivityList((), (), self._span(at, self._previous()), is_star=True)
        if not self._current_token().is_op('('):
            signal = self._advance()
            if signal.kind is not TokenKind.IDENTIFIER:
                raise ParseError("Expected event expression after '@'", signal.span)
            event = EdgeEvent(None, self._expression([signal], signal), signal.span)
            return SensitivityList((event,), (), self._span(at, signal))

        self._advance()
        tokens = self._collect_balanced_until(')')
        close = self._expect_op(')', "Expected ')' to close the sensitivity list")
        span = self._span(at, close)
        if len(tokens) == 1 and tokens[0].is_op('*'):
            return SensitivityList((), (), span, is_star=True)
        if not tokens:
            raise ParseError("Empty sensitivity list", span)

        parts, separators = _split_top(tokens, 'or', ',', '|', '||')
        events = []
        for part in parts:
            if not part:
                raise ParseError("Empty event in sensitivity list", span)
            edge = None
            if part[0].is_keyword('posedge', 'negedge', 'edge'):
                edge = part[0].text
                part = part[1:]
                if not part:
                    raise ParseError(f"Expected signal after '{edge}'", span)
            iff = [index for index, token in enumerate(part) if token.is_keyword('iff')]
            signal = part[:iff[0]] if iff else part
            events.append(EdgeEvent(edge, self._expression(signal, part[0]),
                                    self._span(part[0], part[-1])))
        return SensitivityList(tuple(events), tuple(separators), span)

    def _parse_function(self) -> FunctionDeclaration:
        keyword = self._advance()
        self._accept_keyword('static', 'automatic')
        header = self._collect_until(';')
        semicolon = self._expect_op(';', "Expected ';' after function header")
        names = [token for index, token in enumerate(header)
                 if token.kind is TokenKind.IDENTIFIER
                 and (index + 1 == len(header) or header[index + 1].is_op('('))]
        if not names:
            raise ParseError("Expected function name", keyword.span)

        statements: List[Statement] = []
        while not self._current_token().is_keyword('endfunction'):
            if self._is_at_end() or self._current_token().is_keyword(*SYNC_KEYWORDS):
                raise ParseError(f"Missing 'endfunction' for function '{names[0].text}'",
                                 names[0].span)
            statement = self._parse_statement()
            if statement is not None:
                statements.append(statement)
        end = self._advance()
        self._accept_label()

        header_end = semicolon.end
        if len(statements) == 1 and statements[0].kind is StatementKind.NESTED_BLOCK:
            inner = statements[0].block
            body = Block(BlockKind.FUNCTION, True, inner.statements, inner.span, header_end,
                         inner.begin_span, inner.label)
        else:
            span = self._span(semicolon, end)
            body = Block(BlockKind.FUNCTION, False, tuple(statements), span, header_end)
        return FunctionDeclaration(names[0].text, body, self._span(keyword, end))

    # Statements

    def _parse_body(self, kind: BlockKind, header_end: Position) -> Block:
        """Parse the block owned by a construct: begin/end, or a single statement."""
        if self._current_token().is_keyword('begin'):
            return self._parse_delimited_block(kind, header_end)
        if self._current_token().kind is TokenKind.IDENTIFIER and self._peek(1).is_op(':') \
                and self._peek(2).is_keyword('begin'):
            label = self._advance()
            self._advance()
            block = self._parse_delimited_block(kind, header_end)
            return Block(block.kind, True, block.statements, self._span(label, self._previous()),
                         header_end, block.begin_span, label.text)

        start = self._current_token()
        statement = self._parse_statement()
        span = self._span(start, self._previous())
        statements = (statement,) if statement is not None else ()
        return Block(kind, False, statements, span, header_end)

    def _parse_delimited_block(self, kind: BlockKind, header_end: Position) -> Block:
        begin = self._advance()
        label = self._accept_label()
        statements: List[Statement] = []
        while not self._current_token().is_keyword('end'):
            token = self._current_token()
            if self._is_at_end() or token.is_keyword(*SYNC_KEYWORDS) \
                    or token.is_keyword('endcase', 'endfunction', 'endtask'):
                raise ParseError(f"Missing 'end' for 'begin' at {begin.span.start}", token.span)
            statement = self._parse_statement()
            if statement is not None:
                statements.append(statement)
        end = self._advance()
        self._accept_label()
        return Block(kind, True, tuple(statements), self._span(begin, end), header_end,
                     begin.span, label)

    def _parse_statement(self) -> Optional[Statement]:
        """Parse one procedural statement; None for a null statement or a directive."""
        token = self._current_token()

        if token.is_op(';'):
            self._advance()
            return None
        if token.kind is TokenKind.DIRECTIVE:
            if token.text in GUARD_DIRECTIVES or token.text in LINE_DIRECTIVES:
                self._parse_directive()
                return None
            start_index = self.position
            self._advance()
            if self._current_token().is_op('('):
                self._skip_balanced()
            self._accept_op(';')
            return self._opaque_statement(start_index)
        if token.is_keyword('begin') or (token.kind is TokenKind.IDENTIFIER
                                         and self._peek(1).is_op(':')
                                         and self._peek(2).is_keyword('begin')):
            return NestedBlock(self._parse_body(BlockKind.BARE, token.span.start))
        if token.is_keyword(*STATEMENT_BREAKERS):
            raise ParseError(f"Unexpected '{token.text}' in procedural code", token.span)

        qualifier = None
        if token.is_keyword('unique', 'unique0', 'priority'):
            qualifier = self._advance().text
            if not self._current_token().is_keyword('if', 'case', 'casez', 'casex'):
                raise ParseError(f"Expected 'if' or 'case' after '{qualifier}'",
                                 self._current_token().span)

        current_index = self.position
        current = self._current_token()
        if current.is_keyword('if'):
            return self._parse_if(token, qualifier)
        if current.is_keyword('case', 'casez', 'casex'):
            return self._parse_case(token, qualifier)
        if current.kind is TokenKind.KEYWORD and current.text in SEQUENCE_LOOP_KEYWORDS:
            return self._parse_loop()
        if current.is_op('#'):
            self._skip_delay()
            return self._parse_statement()
        if current.is_op('@'):
            self._parse_event_control()
            return self._parse_statement()
        if current.is_keyword('fork'):
            self._skip_fork()
            return self._opaque_statement(current_index)
        if current.kind is TokenKind.KEYWORD and current.text in OPAQUE_STATEMENT_KEYWORDS:
            self._skip_to_semicolon()
            return self._opaque_statement(current_index)
        return self._parse_simple_statement()

    def _parse_simple_statement(self) -> Statement:
        start_index = self.position
        start = self._current_token()
        tokens = self._collect_until(';', breakers=STATEMENT_BREAKERS)
        semicolon = self._expect_op(';', "Expected ';' after statement")
        if not tokens:
            raise ParseError("Expected statement", start.span)

        index = _find_top(tokens, ASSIGNMENT_OPERATORS)
        target = tokens[:index] if index > 0 else []
        declaration_like = any(first.kind is TokenKind.IDENTIFIER and second.kind is TokenKind.IDENTIFIER
                               for first, second in zip(target, target[1:]))
        if index <= 0 or declaration_like:
            return self._opaque_statement(start_index)

        operator = tokens[index]
        value = tokens[index + 1:]
        if value and value[0].is_op('#'):
            # Intra-assignment delay
            value = value[2:]
        op = AssignOp.NONBLOCKING if operator.text == '<=' else AssignOp.BLOCKING
        return Assignment(
            target=LValue(self._expression(target, operator)),
            op=op,
            operator=operator.text,
            value=self._expression(value, semicolon),
            span=self._span(start, semicolon),
            operator_span=operator.span,
        )

    def _parse_if(self, start: Token, qualifier: Optional[str], is_else_if: bool = False) -> Conditional:
        keyword = self._advance()
        self._expect_op('(', "Expected '(' after 'if'")
        condition = self._collect_balanced_until(')')
        close = self._expect_op(')', "Expected ')' to close the 'if' condition")
        then_block = self._parse_body(BlockKind.IF, close.end)

        else_block = None
        if self._current_token().is_keyword('else'):
            else_token = self._advance()
            nested_start = self._current_token()
            nested_qualifier = None
            if nested_start.is_keyword('unique', 'unique0', 'priority') \
                    and self._peek(1).is_keyword('if'):
                nested_qualifier = self._advance().text
            if self._current_token().is_keyword('if'):
                nested = self._parse_if(nested_start, nested_qualifier, is_else_if=True)
                else_block = Block(BlockKind.ELSE, False, (nested,), nested.span, else_token.end)
            else:
                else_block = self._parse_body(BlockKind.ELSE, else_token.end)

        return Conditional(
            condition=self._expression(condition, keyword),
            then_block=then_block,
            else_block=else_block,
            span=self._span(start, self._previous()),
            qualifier=qualifier,
            is_else_if=is_else_if,
        )

    def _parse_case(self, start: Token, qualifier: Optional[str]) -> CaseStatement:
        keyword = self._advance()
        self._expect_op('(', f"Expected '(' after '{keyword.text}'")
        subject = self._collect_balanced_until(')')
        self._expect_op(')', f"Expected ')' to close the '{keyword.text}' subject")
        self._accept_keyword('inside', 'matches')

        delimited = self._accept_keyword('begin') is not None
        items: List[CaseItem] = []
        default_index = None
        while not self._current_token().is_keyword('endcase'):
            token = self._current_token()
            if delimited and token.is_keyword('end'):
                self._advance()
                continue
            if self._is_at_end() or token.is_keyword(*SYNC_KEYWORDS) \
                    or token.is_keyword('end', 'endfunction', 'endtask'):
                raise ParseError(f"Missing 'endcase' for '{keyword.text}' at {keyword.span.start}",
                                 token.span)

            labels: List[Expression] = []
            is_default = token.is_keyword('default')
            if is_default:
                self._advance()
                colon = self._accept_op(':') or self._previous()
            else:
                label_tokens = self._collect_until(':', breakers=STATEMENT_BREAKERS | {';'})
                colon = self._expect_op(':', "Expected ':' after case item label")
                if not label_tokens:
                    raise ParseError("Empty case item label", colon.span)
                parts, _ = _split_top(label_tokens, ',')
                labels = [self._expression(part, colon) for part in parts if part]

            body = self._parse_body(BlockKind.CASE_ITEM, colon.end)
            if is_default and default_index is None:
                default_index = len(items)
            items.append(CaseItem(tuple(labels), body, self._span(token, self._previous()),
                                  is_default))

        self._advance()
        return CaseStatement(
            keyword=keyword.text,
            subject=self._expression(subject, keyword),
            items=tuple(items),
            span=self._span(start, self._previous()),
            qualifier=qualifier,
            default_index=default_index,
            delimited=delimited,
        )

    def _parse_loop(self) -> Loop:
        keyword = self._advance()
        header: List[Token] = []
        if keyword.text == 'do':
            body = self._parse_body(BlockKind.LOOP, keyword.end)
            self._expect_keyword('while', "Expected 'while' after 'do' body")
            self._expect_op('(', "Expected '(' after 'while'")
            header = self._collect_balanced_until(')')
            self._expect_op(')', "Expected ')' to close the loop condition")
            self._expect_op(';', "Expected ';' after do-while loop")
            return Loop(keyword.text, self._expression(header, keyword), body,
                        self._span(keyword, self._previous()))

        header_end = keyword.end
        if keyword.text != 'forever':
            self._expect_op('(', f"Expected '(' after '{keyword.text}'")
            header = self._collect_balanced_until(')')
            header_end = self._expect_op(')', f"Expected ')' to close the '{keyword.text}' header").end
        body = self._parse_body(BlockKind.LOOP, header_end)
        return Loop(keyword.text, self._expression(header, keyword), body,
                    self._span(keyword, self._previous()))

    def _opaque_statement(self, start_index: int) -> OpaqueStatement:
        tokens = self.tokens[start_index:self.position]
        span = self._span(tokens[0], tokens[-1])
        return OpaqueStatement(Expression.from_tokens(tokens, span), span)

    # Declarations

    def _collect_declaration(self) -> List[Token]:
        tokens = self._collect_until(';', breakers=SYNC_KEYWORDS)
        self._expect_op(';', "Expected ';' after declaration")
        return tokens

    def _analyze_declaration(self, tokens: List[Token], kind: SignalKind,
                             inherit: Optional[_Head] = None
                             ) -> Tuple[List[SignalDeclaration], Optional[_Head], List[TypeDefinition]]:
        """
        Split a declaration into its shared head and one declaration per declarator.

        ANSI port list items pass the previous item's head as ``inherit`` so that
        ``input logic a, b`` style lists inherit direction and type.
        """
        tokens = _strip_directives(tokens)
        typedefs: List[TypeDefinition] = []
        index = _skip_attributes(tokens, 0)
        if index >= len(tokens):
            return [], inherit, typedefs

        direction = None
        direction_token = None
        if tokens[index].kind is TokenKind.KEYWORD and tokens[index].text in DIRECTIONS:
            direction_token = tokens[index]
            direction = DIRECTIONS[direction_token.text]
            index += 1
        if index < len(tokens) and tokens[index].is_keyword('parameter', 'localparam'):
            kind = SignalKind(tokens[index].text)
            index += 1
        while index < len(tokens) and tokens[index].is_keyword('var', 'const', 'static', 'automatic'):
            index += 1
        if index < len(tokens) and tokens[index].is_keyword('type'):
            # Type parameters declare no signals
            return [], inherit, typedefs

        type_keyword = None
        type_token = None
        if index < len(tokens):
            token = tokens[index]
            if token.kind is TokenKind.KEYWORD and token.text in DATA_TYPE_KEYWORDS:
                type_token, type_keyword = token, token.text
                index += 1
                while index < len(tokens) and tokens[index].kind is TokenKind.KEYWORD \
                        and tokens[index].text in DATA_TYPE_KEYWORDS:
                    index += 1
            elif token.is_keyword('enum'):
                typedef, index = self._parse_enum(tokens, index, None)
                typedefs.append(typedef)
                type_token, type_keyword = token, typedef.name
            elif token.is_keyword('struct', 'union'):
                type_token, type_keyword = token, token.text
                while index < len(tokens) and not tokens[index].is_op('{'):
                    index += 1
                index = _matching(tokens, index) + 1
            elif token.kind is TokenKind.IDENTIFIER:
                lookahead = index + 1
                if lookahead < len(tokens) and tokens[lookahead].is_op('.'):
                    # Interface port: iface.modport name
                    return [], inherit, typedefs
                if lookahead + 1 < len(tokens) and tokens[lookahead].is_op('::'):
                    lookahead += 2
                name_index = lookahead
                while name_index < len(tokens) and tokens[name_index].is_op('['):
                    name_index = _matching(tokens, name_index) + 1
                if name_index < len(tokens) and tokens[name_index].kind is TokenKind.IDENTIFIER:
                    type_token, type_keyword = token, tokens[lookahead - 1].text
                    index = lookahead

        signed = False
        if index < len(tokens) and tokens[index].is_keyword('signed', 'unsigned'):
            signed = tokens[index].text == 'signed'
            index += 1
        packed, index = self._parse_dimensions(tokens, index)

        has_own_head = (direction_token is not None or type_token is not None
                        or bool(packed) or signed)
        if inherit is not None and not has_own_head:
            direction, direction_token = inherit.direction, None
            type_keyword, type_token = inherit.type_keyword, None
            packed, signed = inherit.packed, inherit.signed
        elif inherit is not None and direction is None:
            direction = inherit.direction
        head = _Head(direction, direction_token, type_keyword, type_token, tuple(packed), signed)

        declarations: List[SignalDeclaration] = []
        parts, _ = _split_top(tokens[index:], ',')
        for part in parts:
            if not part:
                continue
            name = part[0]
            if name.kind is not TokenKind.IDENTIFIER:
                raise ParseError(f"Expected a declaration name, found '{name.text}'", name.span)
            unpacked, position = self._parse_dimensions(part, 1)
            initializer = None
            if position < len(part) and part[position].is_op('='):
                initializer = self._expression(part[position + 1:], part[position])

            declaration_kind = kind
            cls = SignalDeclaration
            if direction is not None and not kind.is_parameter:
                declaration_kind = direction.signal_kind
                cls = Port
            declarations.append(cls(
                name=name.text,
                kind=declaration_kind,
                name_span=name.span,
                span=self._span(tokens[0], part[-1]),
                type_keyword=type_keyword,
                type_span=type_token.span if type_token is not None else None,
                packed_dimensions=tuple(packed),
                unpacked_dimensions=tuple(unpacked),
                direction=direction if cls is Port else None,
                direction_span=direction_token.span if cls is Port and direction_token else None,
                initializer=initializer,
                signed=signed,
                first_in_statement=not declarations,
            ))
        return declarations, head, typedefs

    def _parse_dimensions(self, tokens: List[Token], index: int) -> Tuple[List[Dimension], int]:
        dimensions = []
        while index < len(tokens) and tokens[index].is_op('['):
            close = _matching(tokens, index)
            inner = tokens[index + 1:close]
            parts, _ = _split_top(inner, ':')
            span = self._span(tokens[index], tokens[close])
            msb = self._expression(parts[0], tokens[index])
            lsb = self._expression(parts[1], tokens[index]) if len(parts) > 1 else None
            dimensions.append(Dimension(msb, lsb, span))
            index = close + 1
        return dimensions, index

    def _parse_enum(self, tokens: List[Token], index: int,
                    name: Optional[Token]) -> Tuple[TypeDefinition, int]:
        """Parse ``enum [base] { members }`` starting at tokens[index]."""
        keyword = tokens[index]
        index += 1
        base_keyword = 'int'
        while index < len(tokens) and not tokens[index].is_op('{'):
            token = tokens[index]
            if token.kind in (TokenKind.KEYWORD, TokenKind.IDENTIFIER) \
                    and not token.is_keyword('signed', 'unsigned'):
                base_keyword = token.text
                index += 1
            elif token.is_op('['):
                break
            else:
                index += 1
        dimensions, index = self._parse_dimensions(tokens, index)
        if index >= len(tokens) or not tokens[index].is_op('{'):
            raise ParseError("Expected '{' in enum declaration", keyword.span)
        close = _matching(tokens, index)
        parts, _ = _split_top(tokens[index + 1:close], ',')
        members = tuple(part[0].text for part in parts
                        if part and part[0].kind is TokenKind.IDENTIFIER)
        anonymous = name is None
        end_token = tokens[close]
        typedef = TypeDefinition(
            name=name.text if name is not None else f"<enum {keyword.line}:{keyword.column}>",
            kind=TypeKind.ENUM,
            span=self._span(keyword, end_token),
            name_span=name.span if name is not None else keyword.span,
            members=members,
            base_width=packed_width_of(base_keyword, dimensions),
            anonymous=anonymous,
        )
        return typedef, close + 1

    def _parse_typedef(self) -> List[TypeDefinition]:
        keyword = self._advance()
        tokens = self._collect_until(';', breakers=SYNC_KEYWORDS)
        semicolon = self._expect_op(';', "Expected ';' after typedef")
        tokens = _strip_directives(tokens)

        # The name is the last identifier, ignoring trailing unpacked dimensions
        end = len(tokens)
        while end > 0 and tokens[end - 1].is_op(']'):
            depth = 0
            while end > 0:
                end -= 1
                if tokens[end].is_op(']'):
                    depth += 1
                elif tokens[end].is_op('['):
                    depth -= 1
                    if depth == 0:
                        break
        if end == 0 or tokens[end - 1].kind is not TokenKind.IDENTIFIER:
            raise ParseError("Expected type name in typedef", semicolon.span)
        name = tokens[end - 1]
        if end == 1 or tokens[0].is_keyword('class', 'interface'):
            # Forward declaration
            return []

        span = self._span(keyword, semicolon)
        first = tokens[0]
        if first.is_keyword('enum'):
            typedef, _ = self._parse_enum(tokens, 0, name)
            return [TypeDefinition(typedef.name, TypeKind.ENUM, span, name.span,
                                   typedef.members, typedef.base_width)]
        if first.is_keyword('struct', 'union'):
            return [TypeDefinition(name.text, TypeKind(first.text), span, name.span)]
        base_width = None
        if first.kind is TokenKind.KEYWORD:
            index = 1
            while index < end - 1 and tokens[index].is_keyword('signed', 'unsigned'):
                index += 1
            dimensions, _ = self._parse_dimensions(tokens, index)
            base_width = packed_width_of(first.text, dimensions)
        return [TypeDefinition(name.text, TypeKind.ALIAS, span, name.span, (), base_width)]

    # Packages and directives

    def _parse_package(self) -> None:
        keyword = self._advance()
        self._skip_to_semicolon()
        while not self._current_token().is_keyword('endpackage'):
            token = self._current_token()
            if self._is_at_end():
                raise ParseError("Missing 'endpackage'", keyword.span)
            if token.is_keyword('typedef'):
                self.file_typedefs.extend(self._parse_typedef())
            elif token.kind is TokenKind.DIRECTIVE:
                self._parse_directive()
            elif token.is_keyword('function'):
                self._skip_to_end_keyword('function', 'endfunction')
            elif token.kind is TokenKind.KEYWORD and token.text in END_KEYWORDS:
                self._skip_to_end_keyword(token.text, END_KEYWORDS[token.text])
            else:
                self._skip_to_semicolon()
        self._advance()
        self._accept_label()

    def _parse_directive(self) -> Optional[OpaqueRegion]:
        """Handle a compiler directive or macro usage; returns an item for macro usages."""
        directive = self._advance()
        text = directive.text
        if text in ('`ifdef', '`ifndef', '`elsif'):
            name = self._current_token()
            if name.kind is TokenKind.IDENTIFIER:
                self._advance()
                if text == '`elsif' and self.guards:
                    self.guards[-1] = name.text
                elif text != '`elsif':
                    self.guards.append(name.text)
            return None
        if text == '`else':
            return None
        if text == '`endif':
            if self.guards:
                self.guards.pop()
            return None
        if text in LINE_DIRECTIVES:
            self._skip_directive_line(directive)
            return None

        # Macro usage
        if self._current_token().is_op('(') and self._current_token().line == directive.line:
            self._skip_balanced()
        self._accept_op(';')
        return OpaqueRegion(text, self._span(directive, self._previous()))

    def _skip_directive_line(self, directive: Token) -> None:
        """Skip to the end of the directive's line, following backslash continuations."""
        raw = self.raw_index[self.position - 1] + 1
        continued = False
        while raw < len(self.all_tokens):
            token = self.all_tokens[raw]
            if token.kind is TokenKind.EOF:
                break
            if token.kind is TokenKind.NEWLINE:
                if not continued:
                    break
                continued = False
            elif token.kind is not TokenKind.WHITESPACE:
                continued = token.text.endswith('\\')
            raw += 1
        self.position = min(bisect_left(self.raw_index, raw), len(self.tokens) - 1)

    # Token helpers

    def _current_token(self) -> Token:
        """Get the current token."""
        if self.position >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.position]

    def _peek(self, distance: int) -> Token:
        index = min(self.position + distance, len(self.tokens) - 1)
        return self.tokens[index]

    def _previous(self) -> Token:
        return self.tokens[max(0, self.position - 1)]

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current_token()
        if not self._is_at_end():
            self.position += 1
        return token

    def _is_at_end(self) -> bool:
        return self._current_token().kind is TokenKind.EOF

    def _accept_op(self, op: str) -> Optional[Token]:
        if self._current_token().is_op(op):
            return self._advance()
        return None

    def _accept_keyword(self, *words: str) -> Optional[Token]:
        if self._current_token().is_keyword(*words):
            return self._advance()
        return None

    def _accept_label(self) -> Optional[str]:
        if self._current_token().is_op(':') and self._peek(1).kind is TokenKind.IDENTIFIER:
            self._advance()
            return self._advance().text
        return None

    def _expect_op(self, op: str, message: str) -> Token:
        token = self._current_token()
        if not token.is_op(op):
            raise ParseError(message, token.span)
        return self._advance()

    def _expect_keyword(self, word: str, message: str) -> Token:
        token = self._current_token()
        if not token.is_keyword(word):
            raise ParseError(message, token.span)
        return self._advance()

    def _collect_until(self, stop: str, breakers=frozenset()) -> List[Token]:
        """Consume tokens up to a depth-0 ``stop`` operator or breaker; neither is consumed."""
        tokens = []
        depth = 0
        while not self._is_at_end():
            token = self._current_token()
            if depth == 0 and (token.is_op(stop) or (
                    token.kind in (TokenKind.KEYWORD, TokenKind.OPERATOR)
                    and token.text in breakers)):
                break
            if token.kind is TokenKind.OPERATOR and token.text in OPENERS:
                depth += 1
            elif token.kind is TokenKind.OPERATOR and token.text in CLOSERS:
                if depth == 0:
                    break
                depth -= 1
            tokens.append(self._advance())
        return tokens

    def _collect_balanced_until(self, close: str) -> List[Token]:
        """Consume tokens up to the closer of an already consumed opener."""
        tokens = []
        depth = 0
        while not self._is_at_end():
            token = self._current_token()
            if token.kind is TokenKind.OPERATOR and token.text in OPENERS:
                depth += 1
            elif token.kind is TokenKind.OPERATOR and token.text in CLOSERS:
                if depth == 0:
                    break
                depth -= 1
            tokens.append(self._advance())
        return tokens

    def _matching_position(self, index: int) -> int:
        return min(_matching(self.tokens, index), len(self.tokens) - 1)

    def _skip_balanced(self) -> None:
        self.position = self._matching_position(self.position) + 1
        self.position = min(self.position, len(self.tokens) - 1)

    def _skip_attribute(self) -> None:
        while not self._is_at_end() and not self._current_token().is_op('*)'):
            self._advance()
        self._advance()

    def _skip_delay(self) -> None:
        if not self._accept_op('#'):
            return
        if self._current_token().is_op('('):
            self._skip_balanced()
        else:
            self._advance()

    def _skip_to_semicolon(self) -> None:
        """Skip an unrecognized item through its ';' without crossing a sync keyword."""
        start = self.position
        while not self._is_at_end():
            token = self._current_token()
            if token.is_op(';'):
                self._advance()
                return
            if token.is_keyword(*SYNC_KEYWORDS) and self.position > start:
                return
            if token.is_op('(', '[', '{', "'{"):
                self._skip_balanced()
            else:
                self._advance()

    def _skip_to_end_keyword(self, open_word: str, close_word: str) -> None:
        start = self._advance()
        depth = 1
        while not self._is_at_end():
            token = self._advance()
            if token.is_keyword(open_word):
                depth += 1
            elif token.is_keyword(close_word):
                depth -= 1
                if depth == 0:
                    self._accept_label()
                    return
        raise ParseError(f"Missing '{close_word}' for '{open_word}'", start.span)

    def _skip_generate_item(self) -> None:
        """Skip an initial/final/if/for/case region, honoring begin/end nesting."""
        token = self._current_token()
        if token.is_keyword('initial', 'final'):
            self._advance()
            self._skip_generate_item()
        elif token.is_keyword('begin'):
            self._skip_to_end_keyword('begin', 'end')
        elif token.is_keyword('if', 'for'):
            self._advance()
            if self._current_token().is_op('('):
                self._skip_balanced()
            self._skip_generate_item()
            if token.is_keyword('if') and self._accept_keyword('else'):
                self._skip_generate_item()
        elif token.is_keyword('case', 'casez', 'casex'):
            start = self._advance()
            depth = 1
            while not self._is_at_end() and depth:
                current = self._advance()
                if current.is_keyword('case', 'casez', 'casex'):
                    depth += 1
                elif current.is_keyword('endcase'):
                    depth -= 1
            if depth:
                raise ParseError(f"Missing 'endcase' for '{start.text}'", start.span)
        elif token.kind is TokenKind.IDENTIFIER and self._peek(1).is_op(':') \
                and self._peek(2).is_keyword('begin'):
            self._advance()
            self._advance()
            self._skip_generate_item()
        else:
            self._skip_to_semicolon()

    def _skip_fork(self) -> None:
        start = self._advance()
        depth = 1
        while not self._is_at_end():
            token = self._advance()
            if token.is_keyword('fork'):
                depth += 1
            elif token.is_keyword('join', 'join_any', 'join_none'):
                depth -= 1
                if depth == 0:
                    self._accept_label()
                    return
        raise ParseError("Missing 'join' for 'fork'", start.span)

    def _synchronize(self, start: Optional[int] = None) -> None:
        """Skip to the next module/endmodule/always* boundary after an error.

        With ``start``, at least one token past it is consumed so an item that fails
        on its first token cannot stall the parser.
        """
        if start is not None and self.position <= start:
            self.position = min(start + 1, len(self.tokens) - 1)
        while not self._is_at_end() and not self._current_token().is_keyword(*SYNC_KEYWORDS):
            self._advance()

    def _record(self, error: ParseError) -> None:
        logger.debug(f"Parse error: {error}")
        self.errors.append(error)

    # Spans and expressions

    def _span(self, start: Token, end: Token) -> Span:
        end_position = max(end.end, start.span.start)
        return Span(self.file_path, Range(start.span.start, end_position))

    def _expression(self, tokens: Sequence[Token], anchor: Token) -> Expression:
        """Build an expression; an empty one is located at ``anchor``."""
        if not tokens:
            position = anchor.span.start
            return Expression((), Span(self.file_path, Range(position, position)), '')
        return Expression.from_tokens(tokens, self._span(tokens[0], tokens[-1]))


def parse(tokens: Sequence[Token], file_path: Optional[str] = None
          ) -> Tuple[List[SourceFile], List[ParseError]]:
    """Parse tokens into structural trees. Never raises; failures come back as errors."""
    return SVParser(tokens, file_path).parse()


__all__ = [
    "SVParser",
    "parse",
    "DATA_TYPE_KEYWORDS",
]
