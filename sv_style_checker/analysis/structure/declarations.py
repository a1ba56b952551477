"""
Declarations: signals, ports, parameters and user-defined types.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ...span import Span
from .expressions import Expression, decimal_value


class SignalKind(Enum):
    """Classification of a declared name."""
    PORT_INPUT = "port-input"
    PORT_OUTPUT = "port-output"
    PORT_INOUT = "port-inout"
    INTERNAL = "internal"
    PARAMETER = "parameter"
    LOCALPARAM = "localparam"

    @property
    def is_port(self) -> bool:
        return self in (SignalKind.PORT_INPUT, SignalKind.PORT_OUTPUT, SignalKind.PORT_INOUT)

    @property
    def is_parameter(self) -> bool:
        return self in (SignalKind.PARAMETER, SignalKind.LOCALPARAM)


class PortDirection(Enum):
    """Port directionality."""
    INPUT = "input"
    OUTPUT = "output"
    INOUT = "inout"

    @property
    def suffix(self) -> str:
        return {PortDirection.INPUT: "i", PortDirection.OUTPUT: "o", PortDirection.INOUT: "io"}[self]

    @property
    def signal_kind(self) -> SignalKind:
        return {
            PortDirection.INPUT: SignalKind.PORT_INPUT,
            PortDirection.OUTPUT: SignalKind.PORT_OUTPUT,
            PortDirection.INOUT: SignalKind.PORT_INOUT,
        }[self]


# Types whose undimensioned declaration is a single bit
SINGLE_BIT_TYPES = frozenset({'logic', 'wire', 'reg', 'bit', 'tri', 'uwire', 'wand', 'wor'})
FIXED_WIDTH_TYPES = {'byte': 8, 'shortint': 16, 'int': 32, 'integer': 32, 'longint': 64}


@dataclass(frozen=True)
class Dimension:
    """One packed or unpacked range, [msb:lsb] or [size]."""
    msb: Expression
    lsb: Optional[Expression]
    span: Span

    @property
    def width(self) -> Optional[int]:
        high = decimal_value(self.msb.text)
        if self.lsb is None:
            return high
        low = decimal_value(self.lsb.text)
        if high is None or low is None:
            return None
        return abs(high - low) + 1

    @property
    def text(self) -> str:
        if self.lsb is None:
            return f"[{self.msb.text}]"
        return f"[{self.msb.text}:{self.lsb.text}]"


def packed_width_of(type_keyword: Optional[str], dimensions) -> Optional[int]:
    """Width of a built-in type with packed dimensions; None for user or unsized types."""
    if type_keyword in FIXED_WIDTH_TYPES and not dimensions:
        return FIXED_WIDTH_TYPES[type_keyword]
    if type_keyword is not None and type_keyword not in SINGLE_BIT_TYPES:
        return None
    width = 1
    for dimension in dimensions:
        if dimension.width is None:
            return None
        width *= dimension.width
    return width


@dataclass(frozen=True)
class SignalDeclaration:
    """A declared signal, port or parameter."""
    name: str
    kind: SignalKind
    name_span: Span
    span: Span
    type_keyword: Optional[str] = None
    type_span: Optional[Span] = None
    packed_dimensions: Tuple[Dimension, ...] = ()
    unpacked_dimensions: Tuple[Dimension, ...] = ()
    direction: Optional[PortDirection] = None
    direction_span: Optional[Span] = None
    initializer: Optional[Expression] = None
    signed: bool = False
    first_in_statement: bool = True

    def __post_init__(self):
        if self.kind.is_port and self.direction is None:
            raise ValueError(f"Port declaration '{self.name}' requires a direction")
        if not self.kind.is_port and self.direction is not None:
            raise ValueError(f"Non-port declaration '{self.name}' cannot carry a direction")

    @property
    def is_port(self) -> bool:
        return self.kind.is_port

    @property
    def packed_width(self) -> Optional[int]:
        """Number of bits for built-in types; None when unknown."""
        if self.kind.is_parameter and self.type_keyword is None and not self.packed_dimensions:
            return None
        return packed_width_of(self.type_keyword, self.packed_dimensions)

    @property
    def is_single_bit(self) -> bool:
        return self.packed_width == 1 and not self.unpacked_dimensions


PORT_SUFFIX_RE = re.compile(r'_(?P<polarity>[np]?)(?P<direction>io|i|o)$')
SPLIT_SUFFIX_RE = re.compile(r'_(?P<polarity>[np])_(?P<direction>io|i|o)$')
POLARITY_RE = re.compile(r'_(?P<polarity>[np])$')


def split_port_name(name: str) -> Tuple[str, str, Optional[str]]:
    """
    Split a port name into (base, polarity, direction suffix).

    rst_ni -> ('rst', 'n', 'i'); data_o -> ('data', '', 'o');
    rst_n_i -> ('rst', 'n', 'i'); clk -> ('clk', '', None).
    """
    match = SPLIT_SUFFIX_RE.search(name) or PORT_SUFFIX_RE.search(name)
    if match:
        return name[:match.start()], match.group('polarity'), match.group('direction')
    match = POLARITY_RE.search(name)
    if match:
        return name[:match.start()], match.group('polarity'), None
    return name, '', None


@dataclass(frozen=True)
class Port(SignalDeclaration):
    """A module-boundary signal."""

    @property
    def polarity(self) -> str:
        """'n' for active-low, 'p' for the positive half of a differential pair, else ''."""
        return split_port_name(self.name)[1]

    @property
    def base_name(self) -> str:
        return split_port_name(self.name)[0]

    @property
    def expected_suffix(self) -> str:
        return f"_{self.polarity}{self.direction.suffix}"

    @property
    def expected_name(self) -> str:
        return f"{self.base_name}{self.expected_suffix}"


class TypeKind(Enum):
    """Kinds of user-defined types."""
    ENUM = "enum"
    STRUCT = "struct"
    UNION = "union"
    ALIAS = "alias"


@dataclass(frozen=True)
class TypeDefinition:
    """A typedef, or an anonymous enum attached to a declaration."""
    name: str
    kind: TypeKind
    span: Span
    name_span: Span
    members: Tuple[str, ...] = ()
    base_width: Optional[int] = None
    anonymous: bool = False


__all__ = [
    "SignalKind",
    "PortDirection",
    "Dimension",
    "SignalDeclaration",
    "Port",
    "TypeKind",
    "TypeDefinition",
    "SINGLE_BIT_TYPES",
    "split_port_name",
    "packed_width_of",
]
