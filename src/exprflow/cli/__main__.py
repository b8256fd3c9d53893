"""
Main Entry Point for the exprflow CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `exprflow.cli.commands`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from exprflow import __version__
from exprflow.cli import commands
from exprflow.config import EngineSettings, parse_cli_key_values
from exprflow.utils.console import log_error, set_verbosity


def _add_common_arguments(cmd: argparse.ArgumentParser) -> None:
  cmd.add_argument("path", type=Path, help="Python source file")
  cmd.add_argument("--function", default=None, help="Function to read (default: first top-level def)")
  cmd.add_argument("--no-warn-unknown", action="store_true", help="Silence unknown-callee warnings")
  cmd.add_argument("--no-warn-shadow", action="store_true", help="Silence possible-local-shadow warnings")
  cmd.add_argument(
    "--config",
    nargs="*",
    help="Warning flags in key=value format (e.g. warn_unknown_callee=False)",
  )


def _settings(args: argparse.Namespace) -> EngineSettings:
  overrides = parse_cli_key_values(args.config)
  if args.no_warn_unknown:
    overrides["warn_unknown_callee"] = False
  if args.no_warn_shadow:
    overrides["warn_possible_local_shadow"] = False
  return EngineSettings.load(search_path=args.path.parent, warning_overrides=overrides)


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="exprflow: expression tree traversal toolkit")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("-v", "--verbose", action="store_true", help="Log traversal details")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: SHOW ---
  cmd_show = subparsers.add_parser("show", help="Print the annotated expression tree of a function")
  _add_common_arguments(cmd_show)

  # --- Command: SYMBOLS ---
  cmd_symbols = subparsers.add_parser("symbols", help="List the symbols a function references")
  _add_common_arguments(cmd_symbols)
  cmd_symbols.add_argument("--unique", action="store_true", help="Report each symbol once")

  args = parser.parse_args(argv)

  if args.verbose:
    set_verbosity(logging.DEBUG)
  logging.captureWarnings(True)

  try:
    settings = _settings(args)
  except (ValueError, ValidationError) as e:
    log_error(f"Invalid configuration: {e}")
    return 1

  if args.command == "show":
    return commands.handle_show(args.path, args.function, settings)

  if args.command == "symbols":
    return commands.handle_symbols(args.path, args.function, settings, unique=args.unique)

  return 0


if __name__ == "__main__":
  sys.exit(main())
