"""
(System)Verilog parsing module.

Provides lexical analysis and structural parsing for (System)Verilog code.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from .lexer import KEYWORDS, SVLexer, Token, TokenKind, lex, significant
from .parser import SVParser, parse

# Export main classes
__all__ = [
    "SVLexer",
    "SVParser",
    "Token",
    "TokenKind",
    "KEYWORDS",
    "lex",
    "parse",
    "significant",
]
