"""
CLI command handlers.
"""

from exprflow.cli.handlers.show import handle_show
from exprflow.cli.handlers.symbols import handle_symbols

__all__ = ["handle_show", "handle_symbols"]
