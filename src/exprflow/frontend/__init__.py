"""
Python Front End.

Reads Python functions into the expression model (``reader``) and renders trees
back to text (``printer``).
"""

from exprflow.frontend.forms import OPERATORS, SPECIAL_FORMS, SYNTAX_ENV, SpecialForm
from exprflow.frontend.printer import deparse
from exprflow.frontend.reader import function_from_callable, list_functions, read_function

__all__ = [
  "OPERATORS",
  "SPECIAL_FORMS",
  "SYNTAX_ENV",
  "SpecialForm",
  "deparse",
  "function_from_callable",
  "list_functions",
  "read_function",
]
