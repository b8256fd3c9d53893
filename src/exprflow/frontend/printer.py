"""
Single-line expression printer.

``deparse`` renders a tree in a compact R-like notation for diagnostics, test
assertions and the CLI. Infix operators are always parenthesised so the output
is unambiguous without precedence rules.
"""

from exprflow.core.nodes import Atomic, Call, Node, ParamList, Primitive, Symbol

_INFIX = {
  "+",
  "-",
  "*",
  "/",
  "//",
  "%",
  "**",
  "@",
  "<<",
  ">>",
  "&",
  "|",
  "^",
  "==",
  "!=",
  "<",
  "<=",
  ">",
  ">=",
  "in",
  "not in",
  "is",
  "is not",
  "and",
  "or",
}
_PREFIX = {"-": "-", "+": "+", "u-": "-", "u+": "+", "~": "~", "not": "not "}
_ASSIGNMENTS = {"=", "<-"}


def deparse(node: Node) -> str:
  """Renders ``node`` on one line."""
  if isinstance(node, Atomic):
    return repr(node.value)
  if isinstance(node, Symbol):
    return node.name
  if isinstance(node, Primitive):
    return f"<primitive {node.name}>"
  if isinstance(node, ParamList):
    return _params(node)
  if isinstance(node, Call):
    return _call(node)
  raise TypeError(f"Cannot deparse {type(node).__name__}")


def _params(node: ParamList) -> str:
  parts = []
  for param in node.params:
    parts.append(param.name if param.default is None else f"{param.name} = {deparse(param.default)}")
  return ", ".join(parts)


def _call(node: Call) -> str:
  name = node.callee_name
  args = [deparse(a) for a in node.args]
  named = any(n is not None for n in node.arg_names)

  if name == "{":
    return "{ " + "; ".join(args) + " }" if args else "{ }"
  if name == "function" and node.args and isinstance(node.args[0], ParamList):
    return f"function({args[0]}) {' '.join(args[1:])}".rstrip()
  if name == "if" and len(args) in (2, 3):
    text = f"if ({args[0]}) {args[1]}"
    return f"{text} else {args[2]}" if len(args) == 3 else text
  if name == "for" and len(args) == 3:
    return f"for ({args[0]} in {args[1]}) {args[2]}"
  if name == "while" and len(args) == 2:
    return f"while ({args[0]}) {args[1]}"
  if not named:
    if name in _ASSIGNMENTS and len(args) == 2:
      return f"{args[0]} {name} {args[1]}"
    if name == "." and len(args) == 2 and isinstance(node.args[1], Atomic):
      return f"{args[0]}.{node.args[1].value}"
    if name == "[" and args:
      return f"{args[0]}[{', '.join(args[1:])}]"
    if name in _INFIX and len(args) == 2:
      return f"({args[0]} {name} {args[1]})"
    if name in _PREFIX and len(args) == 1:
      return f"({_PREFIX[name]}{args[0]})"
    if name == "compare" and _is_chain(node):
      parts = [args[0]]
      for op, operand in zip(node.args[1::2], args[2::2]):
        parts.append(f"{op.value} {operand}")
      return f"({' '.join(parts)})"

  callee = name if name is not None else f"({deparse(node.callee)})"
  rendered = [a if n is None else f"{n} = {a}" for a, n in zip(args, node.arg_names)]
  return f"{callee}({', '.join(rendered)})"


def _is_chain(node: Call) -> bool:
  ops = node.args[1::2]
  return len(node.args) % 2 == 1 and len(ops) > 0 and all(isinstance(op, Atomic) for op in ops)
