"""
Identities for the operator and syntax symbols produced by the Python reader.

The reader turns ``a + b`` into a call on the symbol ``+`` and ``if`` statements
into calls on ``if``. ``SYNTAX_ENV`` gives each such symbol a stable identity,
so call targets can be registered for them like for any other function::

    config.add_call_handler(operator.add, fold_additions)
    config.add_topdown_handler(SPECIAL_FORMS["function"], enter_closure)

Operators resolve to the matching ``operator`` function. Syntax without a
runtime counterpart resolves to a ``SpecialForm`` singleton.
"""

import builtins
import operator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True, eq=False)
class SpecialForm:
  """Marker identity for a syntactic form."""

  name: str

  def __repr__(self) -> str:
    return f"<special form {self.name!r}>"


SPECIAL_FORMS: Mapping[str, SpecialForm] = MappingProxyType(
  {
    name: SpecialForm(name)
    for name in (
      "{",
      "=",
      "<-",
      "function",
      "if",
      "for",
      "while",
      "return",
      "break",
      "continue",
      "and",
      "or",
      "in",
      "not in",
      "compare",
    )
  }
)

OPERATORS: Mapping[str, Any] = MappingProxyType(
  {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
    "**": operator.pow,
    "@": operator.matmul,
    "<<": operator.lshift,
    ">>": operator.rshift,
    "&": operator.and_,
    "|": operator.or_,
    "^": operator.xor,
    "u-": operator.neg,
    "u+": operator.pos,
    "~": operator.invert,
    "not": operator.not_,
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "is": operator.is_,
    "is not": operator.is_not,
    "[": operator.getitem,
    ".": builtins.getattr,
  }
)

SYNTAX_ENV: Mapping[str, Any] = MappingProxyType({**SPECIAL_FORMS, **OPERATORS})
