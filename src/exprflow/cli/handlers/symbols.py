"""
Symbols Command Handler.

Runs a symbol-collecting analysis over a function and prints the symbols in
visitation order, or their distinct set.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.markup import escape
from rich.table import Table

from exprflow.cli.handlers.common import load_annotated
from exprflow.config import EngineSettings
from exprflow.core.api import analyse_with
from exprflow.core.callbacks import CallbackConfig, default_analysis_config
from exprflow.core.context import VisitContext
from exprflow.core.nodes import Symbol
from exprflow.utils.console import console, log_info


def _record_symbol(node: Symbol, ctx: VisitContext) -> Dict[str, Any]:
  return {"symbols": [node.name]}


def symbol_collector() -> CallbackConfig:
  """Analysis configuration that records every symbol it visits."""
  return default_analysis_config().with_symbol_handler(_record_symbol)


def collect_symbols(fn: Any, settings: EngineSettings, unique: bool = False) -> List[str]:
  """Symbols of ``fn`` in depth-first order, optionally deduplicated in first-seen order."""
  found = analyse_with(fn, symbol_collector(), flags=settings.warnings)
  names = list(found.get("symbols", []))
  if unique:
    return list(dict.fromkeys(names))
  return names


def handle_symbols(path: Path, function: Optional[str], settings: EngineSettings, unique: bool = False) -> int:
  """
  Prints the symbols referenced by ``function`` in ``path``.

  Returns:
      int: Exit code (0 on success, 1 if the function could not be loaded).
  """
  fn = load_annotated(path, function, settings)
  if fn is None:
    return 1

  names = collect_symbols(fn, settings, unique=unique)
  table = Table(title=f"Symbols in {fn.name}")
  table.add_column("#", justify="right")
  table.add_column("Symbol", style="symbol")
  table.add_column("Locally bound")
  for index, name in enumerate(names, start=1):
    table.add_row(str(index), escape(name), "yes" if fn.scope.is_bound(name) else "")
  console.print(table)
  log_info(f"{len(names)} symbol(s) found.")
  return 0
