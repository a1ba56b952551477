"""
Lexical analysis for (System)Verilog source.

Every character of the input belongs to exactly one token, whitespace and comments
included, so later stages can measure columns and alignment from the token stream.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ...span import Position, Range, Span
from ..types import LexError

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """Types of (System)Verilog tokens."""
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    LITERAL = "literal"
    STRING = "string"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    NEWLINE = "newline"
    DIRECTIVE = "directive"
    UNKNOWN = "unknown"
    EOF = "eof"


TRIVIA_KINDS = frozenset({TokenKind.WHITESPACE, TokenKind.NEWLINE, TokenKind.COMMENT})


@dataclass(frozen=True)
class Token:
    """A token from (System)Verilog source code."""
    kind: TokenKind
    text: str
    span: Span
    offset: int

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    @property
    def end(self) -> Position:
        return self.span.end

    @property
    def is_trivia(self) -> bool:
        return self.kind in TRIVIA_KINDS

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.KEYWORD and (not words or self.text in words)

    def is_op(self, *ops: str) -> bool:
        return self.kind is TokenKind.OPERATOR and (not ops or self.text in ops)

    def __str__(self) -> str:
        return f"{self.kind.value}({self.text!r}) at {self.span}"


# IEEE 1800-2017 reserved words
KEYWORDS = frozenset("""
    accept_on alias always always_comb always_ff always_latch and assert assign assume
    automatic before begin bind bins binsof bit break buf bufif0 bufif1 byte case casex
    casez cell chandle checker class clocking cmos config const constraint context
    continue cover covergroup coverpoint cross deassign default defparam design disable
    dist do edge else end endcase endchecker endclass endclocking endconfig endfunction
    endgenerate endgroup endinterface endmodule endpackage endprimitive endprogram
    endproperty endspecify endsequence endtable endtask enum event eventually expect
    export extends extern final first_match for force foreach forever fork forkjoin
    function generate genvar global highz0 highz1 if iff ifnone ignore_bins illegal_bins
    implements implies import incdir include initial inout input inside instance int
    integer interconnect interface intersect join join_any join_none large let liblist
    library local localparam logic longint macromodule matches medium modport module
    nand negedge nettype new nexttime nmos nor noshowcancelled not notif0 notif1 null or
    output package packed parameter pmos posedge primitive priority program property
    protected pull0 pull1 pulldown pullup pulsestyle_ondetect pulsestyle_onevent pure
    rand randc randcase randsequence rcmos real realtime ref reg reject_on release repeat
    restrict return rnmos rpmos rtran rtranif0 rtranif1 s_always s_eventually s_nexttime
    s_until s_until_with scalared sequence shortint shortreal showcancelled signed small
    soft solve specify specparam static string strong strong0 strong1 struct super
    supply0 supply1 sync_accept_on sync_reject_on table tagged task this throughout time
    timeprecision timeunit tran tranif0 tranif1 tri tri0 tri1 triand trior trireg type
    typedef union unique unique0 unsigned until until_with untyped use uwire var
    vectored virtual void wait wait_order wand weak weak0 weak1 while wildcard wire with
    within wor xnor xor
""".split())

# Longest match first
OPERATORS = sorted("""
    <<<= >>>= === !== ==? !=? <<< >>> <<= >>= <-> |-> |=> ->>
    == != <= >= && || << >> ** += -= *= /= %= &= |= ^= ++ -- :: -> ~& ~| ~^ ^~
    (* *) +: -: ## '{
    + - * / % & | ^ ~ ! < > = ? : ; , . ( ) [ ] { } # @ ' $
""".split(), key=len, reverse=True)

BASE_DIGITS = {
    'b': set('01xXzZ?_'),
    'o': set('01234567xXzZ?_'),
    'd': set('0123456789xXzZ?_'),
    'h': set('0123456789abcdefABCDEFxXzZ?_'),
}

STRING_ESCAPES = set('nt\\"vfa\n\r') | set('01234567') | {'x'}


class _LexFailure(Exception):
    """Internal signal carrying a LexError and where lexing may resume."""

    def __init__(self, error: LexError, resume_offset: int):
        super().__init__(error.message)
        self.error = error
        self.resume_offset = resume_offset


class SVLexer:
    """Lexical analyzer for (System)Verilog code."""

    def __init__(self, content: str, file_path: Optional[str] = None, best_effort: bool = False):
        self.content = content
        self.file_path = file_path
        self.best_effort = best_effort
        self.position = 0
        self.line = 1
        self.column = 1
        self._attribute_depth = 0

    def tokenize(self) -> Tuple[Tuple[Token, ...], Optional[LexError]]:
        """
        Tokenize the content.

        Returns:
            The tokens (terminated by an EOF token) and the first LexError, if any.
            Without best-effort mode the tokens stop at the error.
        """
        tokens: List[Token] = []
        first_error: Optional[LexError] = None

        while self.position < len(self.content):
            start_offset = self.position
            start_pos = self._here()
            try:
                tokens.append(self._next_token())
            except _LexFailure as failure:
                if first_error is None:
                    first_error = failure.error
                if not self.best_effort:
                    logger.debug(f"Lexing stopped at {failure.error.span}: {failure.error.message}")
                    break
                # Rewind and swallow the offending text as a single UNKNOWN token
                self._rewind(start_offset, start_pos)
                while self.position < failure.resume_offset:
                    self._advance()
                tokens.append(self._make_token(TokenKind.UNKNOWN, start_offset, start_pos))

        tokens.append(self._make_token(TokenKind.EOF, self.position, self._here()))
        logger.debug(f"Lexed {len(tokens)} tokens from {self.file_path or '<text>'}")
        return tuple(tokens), first_error

    def _next_token(self) -> Token:
        """Get the next token from the input."""
        char = self._current_char()
        start_offset = self.position
        start_pos = self._here()

        if char == '\n' or char == '\r':
            if char == '\r' and self._peek_char() == '\n':
                self._advance()
            self._advance()
            return self._make_token(TokenKind.NEWLINE, start_offset, start_pos)

        if char in ' \t\f\v':
            while self._current_char() in ' \t\f\v' and self.position < len(self.content):
                self._advance()
            return self._make_token(TokenKind.WHITESPACE, start_offset, start_pos)

        # Comments
        if char == '/' and self._peek_char() == '/':
            while self.position < len(self.content) and self._current_char() not in '\r\n':
                self._advance()
            return self._make_token(TokenKind.COMMENT, start_offset, start_pos)
        if char == '/' and self._peek_char() == '*':
            return self._read_block_comment(start_offset, start_pos)

        if char == '"':
            return self._read_string(start_offset, start_pos)

        if char.isdigit():
            return self._read_number(start_offset, start_pos)

        if char == "'" and self._peek_char() not in '{(':
            return self._read_based_literal(start_offset, start_pos)

        if char.isalpha() or char == '_':
            return self._read_identifier(start_offset, start_pos)

        if char == '$' and (self._peek_char().isalnum() or self._peek_char() == '_'):
            self._advance()
            self._consume_word()
            return self._make_token(TokenKind.IDENTIFIER, start_offset, start_pos)

        if char == '\\':
            # Escaped identifier runs to the next whitespace
            while self.position < len(self.content) and not self._current_char().isspace():
                self._advance()
            return self._make_token(TokenKind.IDENTIFIER, start_offset, start_pos)

        if char == '`':
            self._advance()
            self._consume_word()
            return self._make_token(TokenKind.DIRECTIVE, start_offset, start_pos)

        return self._read_operator(start_offset, start_pos)

    def _read_operator(self, start_offset: int, start_pos: Position) -> Token:
        rest = self.content[self.position:self.position + 4]
        for op in OPERATORS:
            if not rest.startswith(op):
                continue
            if op == '(*':
                # @(*) is an event control, not an attribute
                if rest[2:3] == ')':
                    continue
                self._attribute_depth += 1
            elif op == '*)':
                if self._attribute_depth == 0:
                    continue
                self._attribute_depth -= 1
            for _ in op:
                self._advance()
            return self._make_token(TokenKind.OPERATOR, start_offset, start_pos)

        # Unknown character
        self._advance()
        raise self._failure(f"Unexpected character {self.content[start_offset]!r}",
                            start_offset, start_pos, self.position)

    def _read_block_comment(self, start_offset: int, start_pos: Position) -> Token:
        self._advance()
        self._advance()
        while self.position < len(self.content):
            if self._current_char() == '*' and self._peek_char() == '/':
                self._advance()
                self._advance()
                return self._make_token(TokenKind.COMMENT, start_offset, start_pos)
            self._advance()
        raise self._failure("Unterminated block comment", start_offset, start_pos, len(self.content))

    def _read_string(self, start_offset: int, start_pos: Position) -> Token:
        self._advance()  # Skip opening quote
        bad_escape: Optional[Tuple[int, Position]] = None

        while self.position < len(self.content):
            char = self._current_char()
            if char == '"':
                self._advance()
                if bad_escape is not None:
                    raise self._failure("Invalid escape sequence in string literal",
                                        bad_escape[0], bad_escape[1], self.position)
                return self._make_token(TokenKind.STRING, start_offset, start_pos)
            if char in '\r\n':
                break
            if char == '\\':
                escape_offset, escape_pos = self.position, self._here()
                self._advance()
                if self._current_char() not in STRING_ESCAPES and bad_escape is None:
                    bad_escape = (escape_offset, escape_pos)
                if self._current_char() == '\r' and self._peek_char() == '\n':
                    self._advance()
                if self.position < len(self.content):
                    self._advance()
                continue
            self._advance()

        raise self._failure("Unterminated string literal", start_offset, start_pos, self.position)

    def _read_number(self, start_offset: int, start_pos: Position) -> Token:
        while self._current_char().isdigit() or self._current_char() == '_':
            self._advance()
        if self._current_char() == '.' and self._peek_char().isdigit():
            self._advance()
            while self._current_char().isdigit() or self._current_char() == '_':
                self._advance()
        if self._current_char() in 'eE' and (self._peek_char().isdigit() or self._peek_char() in '+-'):
            self._advance()
            if self._current_char() in '+-':
                self._advance()
            while self._current_char().isdigit():
                self._advance()
        # Sized based literal, e.g. 8'hFF
        if self._current_char() == "'" and self._peek_char() in 'sSbBoOdDhH':
            return self._read_based_literal(start_offset, start_pos)
        # Time literal suffix, e.g. 10ns
        if self._current_char().isalpha():
            self._consume_word()
        return self._make_token(TokenKind.LITERAL, start_offset, start_pos)

    def _read_based_literal(self, start_offset: int, start_pos: Position) -> Token:
        self._advance()  # Skip tick
        char = self._current_char()

        if char in '01xXzZ' and not self._is_word_char(self._peek_char()):
            self._advance()
            return self._make_token(TokenKind.LITERAL, start_offset, start_pos)

        if char in 'sS':
            self._advance()
            char = self._current_char()

        base = char.lower()
        if base not in BASE_DIGITS:
            if self.position == start_offset + 1:
                # A lone tick is a cast operator
                return self._make_token(TokenKind.OPERATOR, start_offset, start_pos)
            raise self._failure("Malformed based literal: missing base", start_offset, start_pos,
                                self.position)
        self._advance()
        while self._current_char() in ' \t':
            self._advance()

        digits_start = self.position
        while (self._is_word_char(self._current_char()) or self._current_char() == '?') \
                and self.position < len(self.content):
            self._advance()
        digits = self.content[digits_start:self.position]

        if not digits or digits.strip('_') == '':
            raise self._failure("Malformed based literal: no digits", start_offset, start_pos,
                                self.position)
        illegal = [d for d in digits if d not in BASE_DIGITS[base]]
        if illegal:
            raise self._failure(f"Malformed based literal: digit {illegal[0]!r} is not valid "
                                f"for base '{base}'", start_offset, start_pos, self.position)
        return self._make_token(TokenKind.LITERAL, start_offset, start_pos)

    def _read_identifier(self, start_offset: int, start_pos: Position) -> Token:
        self._consume_word()
        text = self.content[start_offset:self.position]
        kind = TokenKind.KEYWORD if text in KEYWORDS else TokenKind.IDENTIFIER
        return self._make_token(kind, start_offset, start_pos)

    def _consume_word(self) -> None:
        while self.position < len(self.content) and (
                self._is_word_char(self._current_char()) or self._current_char() == '$'):
            self._advance()

    @staticmethod
    def _is_word_char(char: str) -> bool:
        return char.isalnum() or char == '_'

    def _current_char(self) -> str:
        """Get the current character."""
        if self.position >= len(self.content):
            return '\0'
        return self.content[self.position]

    def _peek_char(self) -> str:
        """Peek at the next character."""
        if self.position + 1 >= len(self.content):
            return '\0'
        return self.content[self.position + 1]

    def _advance(self) -> None:
        """Advance to the next character."""
        if self.position < len(self.content):
            char = self.content[self.position]
            if char == '\n' or (char == '\r' and self._peek_char() != '\n'):
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.position += 1

    def _rewind(self, offset: int, position: Position) -> None:
        self.position = offset
        self.line = position.line
        self.column = position.column

    def _here(self) -> Position:
        return Position(self.line, self.column)

    def _make_token(self, kind: TokenKind, start_offset: int, start_pos: Position) -> Token:
        span = Span(self.file_path, Range(start_pos, self._here()))
        return Token(kind, self.content[start_offset:self.position], span, start_offset)

    def _failure(self, message: str, error_offset: int, error_pos: Position, resume_offset: int) -> _LexFailure:
        end_pos = self._here() if self.position >= error_offset else error_pos
        error = LexError(message, Span(self.file_path, Range(error_pos, max(error_pos, end_pos))))
        return _LexFailure(error, resume_offset)


def lex(text: str, file_path: Optional[str] = None,
        best_effort: bool = False) -> Tuple[Tuple[Token, ...], Optional[LexError]]:
    """Tokenize text. Never raises; failures come back as the second element."""
    return SVLexer(text, file_path, best_effort).tokenize()


def significant(tokens) -> List[Token]:
    """Drop whitespace, newline and comment tokens."""
    return [token for token in tokens if not token.is_trivia]


__all__ = [
    "TokenKind",
    "Token",
    "SVLexer",
    "KEYWORDS",
    "lex",
    "significant",
]
