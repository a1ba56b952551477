"""
Main entry point for the (System)Verilog style checker.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from . import version
from .analysis.types import DiagnosticSeverity
from .cmd import list_rules as print_rule_list, run_cli
from .server import run_server


logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool, quiet: bool) -> None:
    """Route log output to stderr at the level chosen on the command line."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.getLogger().setLevel(level)


@click.command()
@click.argument(
    "paths",
    nargs=-1,
    type=click.Path(exists=True, path_type=Path)
)
@click.option(
    "--lint-cfg",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Optional JSON lint configuration"
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format"
)
@click.option(
    "--severity",
    type=click.Choice([severity.value for severity in DiagnosticSeverity]),
    default=DiagnosticSeverity.WARNING.value,
    show_default=True,
    help="Least severe diagnostic to report"
)
@click.option(
    "--disable",
    multiple=True,
    metavar="RULE",
    help="Disable a rule (repeatable)"
)
@click.option(
    "--jobs", "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Number of files checked in parallel"
)
@click.option(
    "--best-effort",
    is_flag=True,
    help="Keep lexing past lex errors and check what can be parsed"
)
@click.option(
    "--list-rules",
    is_flag=True,
    help="List all rules with their levels and exit"
)
@click.option(
    "--server",
    is_flag=True,
    help="Run as a language server on stdin/stdout"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Only log errors"
)
@click.version_option(version=version())
def main(
    paths: Tuple[Path, ...],
    lint_cfg: Optional[Path],
    output_format: str,
    severity: str,
    disable: Tuple[str, ...],
    jobs: Optional[int],
    best_effort: bool,
    list_rules: bool,
    server: bool,
    verbose: bool,
    quiet: bool
) -> None:
    """
    Check (System)Verilog sources against the style guide.

    PATHS are files or directories; directories are searched recursively for
    .sv, .svh, .v and .vh files.
    """
    _configure_logging(verbose, quiet)

    logger.debug("Style checker starting")

    if not (paths or list_rules or server):
        raise click.UsageError("No paths given")

    try:
        if server:
            logger.info("Starting style checker as LSP server")
            sys.exit(run_server())
        elif list_rules:
            sys.exit(_list_rules(lint_cfg))
        else:
            try:
                exit_code = run_cli(
                    paths,
                    lint_cfg_path=lint_cfg,
                    output_format=output_format,
                    min_severity=DiagnosticSeverity(severity),
                    disabled_rules=disable,
                    jobs=jobs,
                    best_effort=best_effort,
                )
            except (OSError, ValueError) as e:
                raise click.UsageError(str(e))
            sys.exit(exit_code)
    except click.ClickException:
        raise
    except KeyboardInterrupt:
        logger.info("Style checker interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Style checker failed with error: {e}", exc_info=True)
        sys.exit(1)


def _list_rules(lint_cfg: Optional[Path]) -> int:
    try:
        return print_rule_list(lint_cfg)
    except (OSError, ValueError) as e:
        raise click.UsageError(str(e))


if __name__ == "__main__":
    main()
