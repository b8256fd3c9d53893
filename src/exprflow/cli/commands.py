"""
CLI Command Handlers Facade.

Re-exports handlers from `exprflow.cli.handlers`.
"""

from exprflow.cli.handlers.show import handle_show
from exprflow.cli.handlers.symbols import handle_symbols, collect_symbols, symbol_collector

__all__ = ["handle_show", "handle_symbols", "collect_symbols", "symbol_collector"]
