"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Hand-built example functions shared across test modules.
- Console capture for CLI output.
"""

import io
import sys
from pathlib import Path

import pytest
from rich.console import Console

# Add src to path so we can import 'exprflow' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from exprflow.core.callbacks import default_analysis_config  # noqa: E402
from exprflow.core.nodes import Atomic, Function, Param, ParamList, Symbol, call  # noqa: E402
from exprflow.utils.console import THEME, reset_console, set_console  # noqa: E402


def record_symbol(node, ctx):
  return {"symbols": [node.name]}


@pytest.fixture
def symbol_config():
  """Analysis configuration recording every visited symbol."""
  return default_analysis_config().with_symbol_handler(record_symbol)


@pytest.fixture
def example_function():
  """
  ``function(x, y) { a <- x + y; b <- x - y; 2 * a - b ^ 2 }``
  """
  body = call(
    "{",
    call("<-", Symbol("a"), call("+", Symbol("x"), Symbol("y"))),
    call("<-", Symbol("b"), call("-", Symbol("x"), Symbol("y"))),
    call("-", call("*", Atomic(2), Symbol("a")), call("^", Symbol("b"), Atomic(2))),
  )
  return Function(params=ParamList((Param("x"), Param("y"))), body=body, env={}, name="example")


@pytest.fixture
def captured_console():
  """Routes console and log output into a buffer for the duration of a test."""
  buf = io.StringIO()
  set_console(Console(file=buf, width=200, theme=THEME, color_system=None))
  yield buf
  reset_console()
