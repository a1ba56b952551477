"""
SystemVerilog Style Checker

A style-conformance linter for (System)Verilog source. It lexes and structurally
parses HDL files, then runs independent rule checks covering naming suffixes,
declaration alignment, block structure, case completeness, procedural assignment
discipline and formatting. Results are reported on the command line or published to
editors through a language server.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

__version__ = "0.1.0"
__author__ = "Intel Corporation"
__license__ = "Apache-2.0 OR MIT"

import logging

# Set up default logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

def version() -> str:
    """Return the version string."""
    return __version__

def internal_error(message: str, *args) -> None:
    """Log an internal error message."""
    logger = logging.getLogger(__name__)
    if args:
        logger.error(f"Internal Error: {message.format(*args)}")
    else:
        logger.error(f"Internal Error: {message}")

# Export commonly used types and functions
__all__ = [
    "version",
    "internal_error",
    "__version__",
    "__author__",
    "__license__",
]
