"""
Python Source Reader.

Converts a Python function definition, parsed with LibCST, into the expression
model. The mapping follows the conventions the scope analysis expects:

- A statement block becomes a ``{`` call over its statements.
- ``x = v`` becomes ``=(x, v)``. ``x += v`` becomes ``=(x, +(x, v))``.
- ``def g(p): ...`` inside a body becomes ``=(g, function(ParamList, body))``.
  ``lambda p: e`` becomes ``function(ParamList, e)``.
- ``if``/``for``/``while``/``return``/``break``/``continue`` become calls on
  the keyword. ``a if c else b`` becomes ``if(c, a, b)``.
- Operators become calls on the operator text. Unary minus and plus use
  ``u-``/``u+`` so they resolve apart from subtraction and addition. A chained
  comparison ``a < b <= c`` becomes ``compare(a, "<", b, "<=", c)``.
  ``a.b`` becomes ``.(a, "b")`` and ``a[i]`` becomes ``[(a, i)``.

Constructs outside this subset raise ``UnsupportedSyntaxError``.
"""

import builtins
import inspect
import textwrap
from collections import ChainMap
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import libcst as cst

from exprflow.core.nodes import Atomic, Call, Function, Node, Param, ParamList, Symbol
from exprflow.errors import UnsupportedSyntaxError
from exprflow.frontend.forms import SYNTAX_ENV

BLOCK = "{"
ASSIGN = "="
FUNCTION = "function"
COMPARE = "compare"

_BINARY_OPS: Dict[type, str] = {
  cst.Add: "+",
  cst.Subtract: "-",
  cst.Multiply: "*",
  cst.Divide: "/",
  cst.FloorDivide: "//",
  cst.Modulo: "%",
  cst.Power: "**",
  cst.MatrixMultiply: "@",
  cst.LeftShift: "<<",
  cst.RightShift: ">>",
  cst.BitAnd: "&",
  cst.BitOr: "|",
  cst.BitXor: "^",
}

_AUGMENTED_OPS: Dict[type, str] = {
  cst.AddAssign: "+",
  cst.SubtractAssign: "-",
  cst.MultiplyAssign: "*",
  cst.DivideAssign: "/",
  cst.FloorDivideAssign: "//",
  cst.ModuloAssign: "%",
  cst.PowerAssign: "**",
  cst.MatrixMultiplyAssign: "@",
  cst.LeftShiftAssign: "<<",
  cst.RightShiftAssign: ">>",
  cst.BitAndAssign: "&",
  cst.BitOrAssign: "|",
  cst.BitXorAssign: "^",
}

_UNARY_OPS: Dict[type, str] = {
  cst.Minus: "u-",
  cst.Plus: "u+",
  cst.BitInvert: "~",
  cst.Not: "not",
}

_BOOLEAN_OPS: Dict[type, str] = {
  cst.And: "and",
  cst.Or: "or",
}

_COMPARISON_OPS: Dict[type, str] = {
  cst.Equal: "==",
  cst.NotEqual: "!=",
  cst.LessThan: "<",
  cst.LessThanEqual: "<=",
  cst.GreaterThan: ">",
  cst.GreaterThanEqual: ">=",
  cst.In: "in",
  cst.NotIn: "not in",
  cst.Is: "is",
  cst.IsNot: "is not",
}

_NAMED_CONSTANTS = {"True": True, "False": False, "None": None}


def _call(name: str, *args: Node) -> Call:
  return Call(Symbol(name), tuple(args))


class FunctionReader:
  """
  Translates LibCST function definitions into (ParamList, body) pairs.
  """

  # --- Definitions ---

  def read_def(self, node: cst.FunctionDef) -> Function:
    """Converts a ``def`` into a Function without environment."""
    if node.asynchronous is not None:
      raise UnsupportedSyntaxError("async def", node.name.value)
    return Function(params=self.params(node.params), body=self.block(node.body), name=node.name.value)

  def params(self, params: cst.Parameters) -> ParamList:
    """
    Converts formal parameters. ``*args``/``**kwargs`` keep their bare names.
    """
    ordered: List[cst.Param] = [*params.posonly_params, *params.params]
    if isinstance(params.star_arg, cst.Param):
      ordered.append(params.star_arg)
    ordered.extend(params.kwonly_params)
    if isinstance(params.star_kwarg, cst.Param):
      ordered.append(params.star_kwarg)

    converted = []
    for param in ordered:
      default = self.expr(param.default) if param.default is not None else None
      converted.append(Param(param.name.value, default))
    return ParamList(tuple(converted))

  # --- Statements ---

  def block(self, suite: cst.BaseSuite) -> Call:
    statements: List[Node] = []
    for stmt in suite.body:
      statements.extend(self.statement(stmt))
    return _call(BLOCK, *statements)

  def statement(self, stmt: Any) -> List[Node]:
    """Converts one statement. A simple line may hold several small statements."""
    if isinstance(stmt, cst.SimpleStatementLine):
      return [self.small_statement(small) for small in stmt.body]
    if isinstance(stmt, cst.BaseSmallStatement):
      return [self.small_statement(stmt)]
    if isinstance(stmt, cst.If):
      return [self._if(stmt)]
    if isinstance(stmt, cst.For):
      if stmt.asynchronous is not None or stmt.orelse is not None:
        raise UnsupportedSyntaxError("for/else or async for")
      return [_call("for", self._loop_target(stmt.target), self.expr(stmt.iter), self.block(stmt.body))]
    if isinstance(stmt, cst.While):
      if stmt.orelse is not None:
        raise UnsupportedSyntaxError("while/else")
      return [_call("while", self.expr(stmt.test), self.block(stmt.body))]
    if isinstance(stmt, cst.FunctionDef):
      fn = self.read_def(stmt)
      return [_call(ASSIGN, Symbol(stmt.name.value), _call(FUNCTION, fn.params, fn.body))]
    raise UnsupportedSyntaxError(type(stmt).__name__)

  def _if(self, stmt: cst.If) -> Call:
    args: List[Node] = [self.expr(stmt.test), self.block(stmt.body)]
    if isinstance(stmt.orelse, cst.If):
      args.append(self._if(stmt.orelse))
    elif isinstance(stmt.orelse, cst.Else):
      args.append(self.block(stmt.orelse.body))
    return _call("if", *args)

  def _loop_target(self, target: cst.BaseExpression) -> Node:
    if not isinstance(target, cst.Name):
      raise UnsupportedSyntaxError("for loop target", "only a bare name is supported")
    return Symbol(target.value)

  def small_statement(self, stmt: cst.BaseSmallStatement) -> Node:
    if isinstance(stmt, cst.Assign):
      value = self.expr(stmt.value)
      for target in reversed(stmt.targets):
        value = _call(ASSIGN, self._assign_target(target.target), value)
      return value
    if isinstance(stmt, cst.AugAssign):
      op = _AUGMENTED_OPS[type(stmt.operator)]
      target = self._assign_target(stmt.target)
      return _call(ASSIGN, target, _call(op, self._assign_target(stmt.target), self.expr(stmt.value)))
    if isinstance(stmt, cst.AnnAssign):
      if stmt.value is None:
        return Atomic(None)
      return _call(ASSIGN, self._assign_target(stmt.target), self.expr(stmt.value))
    if isinstance(stmt, cst.Expr):
      return self.expr(stmt.value)
    if isinstance(stmt, cst.Return):
      if stmt.value is None:
        return _call("return")
      return _call("return", self.expr(stmt.value))
    if isinstance(stmt, cst.Pass):
      return Atomic(None)
    if isinstance(stmt, cst.Break):
      return _call("break")
    if isinstance(stmt, cst.Continue):
      return _call("continue")
    raise UnsupportedSyntaxError(type(stmt).__name__)

  def _assign_target(self, target: cst.BaseExpression) -> Node:
    if isinstance(target, (cst.Name, cst.Attribute, cst.Subscript)):
      return self.expr(target)
    raise UnsupportedSyntaxError("assignment target", type(target).__name__)

  # --- Expressions ---

  def expr(self, node: cst.BaseExpression) -> Node:
    if isinstance(node, cst.Name):
      if node.value in _NAMED_CONSTANTS:
        return Atomic(_NAMED_CONSTANTS[node.value])
      return Symbol(node.value)
    if isinstance(node, (cst.Integer, cst.Float, cst.Imaginary, cst.SimpleString, cst.ConcatenatedString)):
      return Atomic(node.evaluated_value)
    if isinstance(node, cst.Ellipsis):
      return Atomic(...)
    if isinstance(node, cst.BinaryOperation):
      return _call(_BINARY_OPS[type(node.operator)], self.expr(node.left), self.expr(node.right))
    if isinstance(node, cst.UnaryOperation):
      return _call(_UNARY_OPS[type(node.operator)], self.expr(node.expression))
    if isinstance(node, cst.BooleanOperation):
      return _call(_BOOLEAN_OPS[type(node.operator)], self.expr(node.left), self.expr(node.right))
    if isinstance(node, cst.Comparison):
      return self._comparison(node)
    if isinstance(node, cst.Call):
      return self._invocation(node)
    if isinstance(node, cst.Attribute):
      return _call(".", self.expr(node.value), Atomic(node.attr.value))
    if isinstance(node, cst.Subscript):
      return _call("[", self.expr(node.value), *[self._subscript(el.slice) for el in node.slice])
    if isinstance(node, cst.Lambda):
      return _call(FUNCTION, self.params(node.params), self.expr(node.body))
    if isinstance(node, cst.IfExp):
      return _call("if", self.expr(node.test), self.expr(node.body), self.expr(node.orelse))
    if isinstance(node, (cst.Tuple, cst.List)):
      return _call("tuple" if isinstance(node, cst.Tuple) else "list", *self._elements(node.elements))
    raise UnsupportedSyntaxError(type(node).__name__)

  def _comparison(self, node: cst.Comparison) -> Node:
    left = self.expr(node.left)
    if len(node.comparisons) == 1:
      target = node.comparisons[0]
      return _call(_COMPARISON_OPS[type(target.operator)], left, self.expr(target.comparator))
    # a < b <= c reads as compare(a, "<", b, "<=", c); each operand appears once
    args: List[Node] = [left]
    for target in node.comparisons:
      args.append(Atomic(_COMPARISON_OPS[type(target.operator)]))
      args.append(self.expr(target.comparator))
    return _call(COMPARE, *args)

  def _invocation(self, node: cst.Call) -> Call:
    args: List[Node] = []
    names: List[Optional[str]] = []
    for arg in node.args:
      if arg.star:
        raise UnsupportedSyntaxError("star arguments")
      args.append(self.expr(arg.value))
      names.append(arg.keyword.value if arg.keyword is not None else None)
    return Call(self.expr(node.func), tuple(args), tuple(names))

  def _subscript(self, element: cst.BaseSlice) -> Node:
    if isinstance(element, cst.Index):
      return self.expr(element.value)
    parts = [element.lower, element.upper, element.step]
    return _call("slice", *[self.expr(p) if p is not None else Atomic(None) for p in parts])

  def _elements(self, elements: Sequence[cst.BaseElement]) -> List[Node]:
    converted = []
    for element in elements:
      if isinstance(element, cst.StarredElement):
        raise UnsupportedSyntaxError("starred element")
      converted.append(self.expr(element.value))
    return converted


def _default_env(extra: Optional[Mapping[str, Any]] = None) -> ChainMap:
  layers: List[Mapping[str, Any]] = [vars(builtins), SYNTAX_ENV]
  if extra is not None:
    layers.insert(0, extra)
  return ChainMap(*layers)


def read_function(source: str, name: Optional[str] = None, env: Optional[Mapping[str, Any]] = None) -> Function:
  """
  Parses Python source and converts one top-level function.

  Args:
      source: Module source text.
      name: The function to read. Defaults to the first ``def``.
      env: Names visible to the function. Builtins and operator identities are
          always layered underneath.

  Returns:
      Function: The converted function.

  Raises:
      libcst.ParserSyntaxError: If ``source`` is not valid Python.
      ValueError: If no matching function exists.
      UnsupportedSyntaxError: If the function uses unsupported constructs.
  """
  module = cst.parse_module(textwrap.dedent(source))
  for stmt in module.body:
    if isinstance(stmt, cst.FunctionDef) and (name is None or stmt.name.value == name):
      fn = FunctionReader().read_def(stmt)
      fn.env = _default_env(env)
      return fn
  raise ValueError(f"No function named '{name}' found" if name else "No function definition found")


def list_functions(source: str) -> List[str]:
  """Names of the top-level functions in ``source``."""
  module = cst.parse_module(textwrap.dedent(source))
  return [stmt.name.value for stmt in module.body if isinstance(stmt, cst.FunctionDef)]


def function_from_callable(fn: Callable[..., Any]) -> Function:
  """
  Reads a live Python function.

  The environment chains the function's closure variables, its module globals,
  builtins and the operator identities, so call targets resolve to the objects
  the function would call.

  Raises:
      TypeError: If ``fn`` has no retrievable source.
  """
  try:
    source = inspect.getsource(fn)
  except (OSError, TypeError) as e:
    raise TypeError(f"Cannot read the source of {fn!r}: {e}") from e

  closure = inspect.getclosurevars(fn).nonlocals
  env = ChainMap(dict(closure), fn.__globals__, vars(builtins), SYNTAX_ENV)
  function = read_function(source, name=fn.__name__)
  function.env = env
  return function
