"""
(System)Verilog structural tree.

The tree is deliberately shallow: enough structure for style rules (modules, ports,
declarations, procedures, statements) with everything else kept as opaque token spans.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

from .expressions import *
from .declarations import *
from .statements import *
from .toplevel import *

__all__ = [
    # From expressions
    'Expression', 'RELATIONAL_OPERATORS', 'REDUCTION_OPERATORS', 'literal_width',
    'decimal_value', 'literal_value',

    # From declarations
    'SignalKind', 'PortDirection', 'Dimension', 'SignalDeclaration', 'Port', 'TypeKind',
    'TypeDefinition', 'SINGLE_BIT_TYPES', 'split_port_name', 'packed_width_of',

    # From statements
    'BlockKind', 'NEVER_DELIMITED', 'StatementKind', 'AssignOp', 'LValue', 'Assignment',
    'Conditional', 'CaseItem', 'CaseStatement', 'NestedBlock', 'Loop', 'OpaqueStatement',
    'Statement', 'Block', 'child_blocks',

    # From toplevel
    'ProcedureKind', 'EdgeEvent', 'SensitivityList', 'Procedure', 'ContinuousAssign',
    'FunctionDeclaration', 'OpaqueRegion', 'ModuleItem', 'ModuleDeclaration', 'SourceFile',
]
