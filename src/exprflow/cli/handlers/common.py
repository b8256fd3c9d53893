"""
Shared helpers for CLI handlers.
"""

from pathlib import Path
from typing import Optional

import libcst as cst

from exprflow.analysis.scope import ScopeAnalyzer
from exprflow.config import EngineSettings
from exprflow.core.nodes import AnnotatedFunction
from exprflow.frontend.reader import read_function
from exprflow.utils.console import log_error


def load_annotated(path: Path, function: Optional[str], settings: EngineSettings) -> Optional[AnnotatedFunction]:
  """
  Reads, converts and annotates one function from a source file.

  Problems are logged and reported as None so handlers can return exit code 1.
  """
  if not path.is_file():
    log_error(f"Path not found: {path}")
    return None

  try:
    fn = read_function(path.read_text(encoding="utf-8"), name=function)
  except cst.ParserSyntaxError as e:
    log_error(f"Cannot parse {path}: {e.message}")
    return None
  except ValueError as e:
    # Also covers UnsupportedSyntaxError
    log_error(f"{path}: {e}")
    return None

  return ScopeAnalyzer(settings.scope).annotate(fn)
