"""
Show Command Handler.

Prints the annotated expression tree of a function, marking every scope
boundary with its assigned and bound name sets.
"""

from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.tree import Tree

from exprflow.cli.handlers.common import load_annotated
from exprflow.config import EngineSettings
from exprflow.core.nodes import Atomic, Call, Node, ParamList, Primitive, ScopeInfo, Symbol
from exprflow.utils.console import console


def _label(node: Node) -> str:
  if isinstance(node, Atomic):
    return f"atomic [dim]{escape(repr(node.value))}[/dim]"
  if isinstance(node, Symbol):
    return f"symbol [symbol]{escape(node.name)}[/symbol]"
  if isinstance(node, Primitive):
    return f"primitive [symbol]{escape(node.name)}[/symbol]"
  if isinstance(node, ParamList):
    return f"pairlist ({escape(', '.join(node.names))})"
  callee = node.callee_name if isinstance(node, Call) else None
  return f"call [symbol]{escape(callee or '<expr>')}[/symbol]"


def _scope_label(info: ScopeInfo) -> str:
  return f"[scope]scope[/scope] assigned={escape(str(sorted(info.assigned)))} bound={escape(str(sorted(info.bound)))}"


def build_tree(node: Node, branch: Tree, parent_scope: Optional[ScopeInfo] = None) -> None:
  """Adds ``node`` (and its descendants) under ``branch``."""
  label = _label(node)
  scope = node.scope
  if scope is not None and scope is not parent_scope:
    label = f"{label}  {_scope_label(scope)}"
  child_branch = branch.add(label)
  for child in node.children():
    build_tree(child, child_branch, scope)


def handle_show(path: Path, function: Optional[str], settings: EngineSettings) -> int:
  """
  Prints the annotated tree of ``function`` in ``path``.

  Returns:
      int: Exit code (0 on success, 1 if the function could not be loaded).
  """
  fn = load_annotated(path, function, settings)
  if fn is None:
    return 1

  root = Tree(f"[bold]{fn.name}[/bold]({', '.join(fn.params.names)})  {_scope_label(fn.scope)}")
  build_tree(fn.params, root, fn.scope)
  build_tree(fn.body, root, fn.scope)
  console.print(root)
  return 0
