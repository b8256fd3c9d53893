"""
Handler Context.

Every handler is called as ``handler(node, ctx)``. ``ctx`` is a
``VisitContext`` bundling what the traversal knows at that node: the topdown
information, the child results (analysis), the scope, the warning flags, the
extra named parameters of the traversal, and the chaining capabilities.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, NoReturn, Optional

from exprflow.config import WarningFlags
from exprflow.core.nodes import EMPTY_SCOPE, Node, ScopeInfo
from exprflow.enums import TraversalMode


@dataclass
class VisitContext:
  """
  Argument bundle passed to a handler.

  Attributes:
      mode: The active traversal mode.
      topdown: Information computed by topdown handlers of the enclosing nodes.
          Inside a topdown handler, this is the value inherited from the parent.
      bottomup: Analysis mode, composite nodes: ordered child results.
          Analysis mode, leaves: an empty list. Rewrite mode: None.
      scope: The ScopeInfo of the enclosing scope.
      flags: Warning flags of the traversal.
      env: The function's environment, if any.
      params: Extra named parameters passed to ``analyse_with``/``rewrite_with``.
      next_cb: Calls the previously installed handler with a node. None at the
          end of the chain.
  """

  mode: TraversalMode
  topdown: Any = None
  bottomup: Optional[List[Any]] = None
  scope: ScopeInfo = EMPTY_SCOPE
  flags: WarningFlags = field(default_factory=WarningFlags)
  env: Optional[Mapping[str, Any]] = None
  params: Dict[str, Any] = field(default_factory=dict)
  next_cb: Optional[Callable[[Node], Any]] = None
  _skip: Optional[Callable[[Any], NoReturn]] = field(default=None, repr=False)

  def skip(self, value: Any) -> NoReturn:
    """
    Ends the visit of the current node with ``value`` as its result.

    Only available inside topdown handlers. Children and the node-kind handler
    are not visited.

    Raises:
        RuntimeError: If called outside a topdown handler.
    """
    if self._skip is None:
      raise RuntimeError("skip() is only available inside topdown handlers")
    self._skip(value)

  @property
  def can_skip(self) -> bool:
    return self._skip is not None

  def param(self, name: str, default: Any = None) -> Any:
    """Reads an extra named parameter of the traversal."""
    return self.params.get(name, default)

  def chained(self, next_cb: Optional[Callable[[Node], Any]]) -> "VisitContext":
    """Copy with a different ``next_cb``, used when walking a handler chain."""
    return replace(self, next_cb=next_cb)
