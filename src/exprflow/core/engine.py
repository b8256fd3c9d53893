"""
Traversal Engine.

The ``TraversalEngine`` executes one depth-first pass over an expression tree,
dispatching every node to the handler chain configured for its kind.

Per node:

1.  **Leaves** (atomic, symbol, primitive): the kind chain is invoked and its
    return value is the node's result.
2.  **Composites** (pairlist, call): the topdown chain runs first (pre-order).
    Its return value becomes the topdown information of the children. It may
    instead call ``ctx.skip(value)``, which makes ``value`` the node's result
    without visiting children or running the kind chain.
    Otherwise the children are visited left to right. Then the kind chain runs
    (post-order) with either the child results (``ctx.bottomup``, analysis) or
    a node rebuilt from the rewritten children (rewrite).

The children of a call are its arguments. The callee position is not
traversed; it is consulted for target-specific dispatch only. The children of
a pairlist are its default expressions.

Target-specific chains registered with ``add_call_handler`` and
``add_topdown_handler`` are placed in front of the generic chains when the
callee resolves to a registered target and the callee name is not in the
enclosing scope's ``bound`` set.

Handler exceptions propagate unchanged. Results of the wrong shape raise
``HandlerResultError``.
"""

import logging
import sys
import warnings
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Sequence

from exprflow.config import WarningFlags
from exprflow.core.callbacks import CallbackConfig, Handler
from exprflow.core.context import VisitContext
from exprflow.core.nodes import EMPTY_SCOPE, Call, Node, Primitive, ScopeInfo, Symbol
from exprflow.enums import HandlerSlot, TraversalMode
from exprflow.errors import HandlerResultError, PossibleLocalShadowWarning, UnknownCalleeWarning

logger = logging.getLogger(__name__)

# Sentinel for "no target-specific dispatch applies".
_NO_TARGET = object()


class _SkipSignal(Exception):
  """Raised by ``ctx.skip``; caught by the visit that created the token."""

  def __init__(self, token: object, value: Any):
    super().__init__("skip")
    self.token = token
    self.value = value


class TraversalEngine:
  """
  Single-threaded depth-first walker.

  An engine instance is bound to one configuration and one set of traversal
  parameters. It keeps no state between ``run`` calls.
  """

  def __init__(
    self,
    config: CallbackConfig,
    flags: Optional[WarningFlags] = None,
    env: Optional[Mapping[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
  ):
    """
    Args:
        config: Handler configuration. Its mode selects analysis or rewrite.
        flags: Warning flags consulted before each diagnostic.
        env: Environment used to resolve callee names to targets.
        params: Extra named parameters exposed to handlers as ``ctx.params``.
    """
    self.config = config
    self.mode = config.mode
    self.flags = flags or WarningFlags()
    self.env = env
    self.params = dict(params or {})

  def run(self, expr: Node, topdown: Any = None, scope: Optional[ScopeInfo] = None) -> Any:
    """
    Traverses ``expr``.

    Args:
        expr: Root of the traversal.
        topdown: Initial topdown information (default: empty dict).
        scope: Scope used for nodes without a stamped ScopeInfo.

    Returns:
        A node (rewrite) or a name -> list mapping (analysis).
    """
    if topdown is None:
      topdown = {}
    return self._visit(expr, topdown, scope or EMPTY_SCOPE)

  # --- Visiting ---

  def _visit(self, node: Node, topdown: Any, scope: ScopeInfo) -> Any:
    if node.scope is not None:
      scope = node.scope

    slot = HandlerSlot.for_kind(node.kind)
    if not node.kind.is_composite:
      return self._visit_leaf(node, slot, topdown, scope)

    target = _NO_TARGET
    if isinstance(node, Call):
      target = self._resolve_target(node, scope)

    token = object()

    def skip(value: Any) -> NoReturn:
      raise _SkipSignal(token, value)

    topdown_ctx = self._context(topdown, scope, skip=skip)
    try:
      inner = self._invoke(self._chain(HandlerSlot.TOPDOWN, target), node, topdown_ctx)
    except _SkipSignal as signal:
      if signal.token is not token:
        raise
      logger.debug("Skipped %s subtree", node.kind.value)
      return self._finish(signal.value, node, HandlerSlot.TOPDOWN)

    children = self._traversed_children(node)
    chain = self._chain(slot, target)
    if self.mode is TraversalMode.REWRITE:
      new_children = [self._visit(child, inner, scope) for child in children]
      if isinstance(node, Call):
        # The callee is not traversed, so it is copied here.
        rebuilt = node.with_children([node.callee.clone(), *new_children])
      else:
        rebuilt = node.with_children(new_children)
      result = self._invoke(chain, rebuilt, self._context(inner, scope))
      return self._finish(result, rebuilt, slot, fresh=rebuilt)

    bottomup = [self._visit(child, inner, scope) for child in children]
    result = self._invoke(chain, node, self._context(inner, scope, bottomup=bottomup))
    return self._finish(result, node, slot)

  def _visit_leaf(self, node: Node, slot: HandlerSlot, topdown: Any, scope: ScopeInfo) -> Any:
    chain = self._chain(slot, _NO_TARGET)
    if self.mode is TraversalMode.REWRITE:
      fresh = node.clone()
      return self._finish(self._invoke(chain, fresh, self._context(topdown, scope)), fresh, slot, fresh=fresh)
    return self._finish(self._invoke(chain, node, self._context(topdown, scope, bottomup=[])), node, slot)

  @staticmethod
  def _traversed_children(node: Node) -> Sequence[Node]:
    if isinstance(node, Call):
      return node.args
    return node.children()

  # --- Handler chains ---

  def _chain(self, slot: HandlerSlot, target: Any) -> List[Handler]:
    chain: List[Handler] = []
    if target is not _NO_TARGET:
      link = self.config.target_chain(slot, target)
      if link is not None:
        chain.extend(link)
    chain.extend(self.config.handler_chain(slot))
    return chain

  def _invoke(self, chain: List[Handler], node: Node, ctx: VisitContext, index: int = 0) -> Any:
    next_cb = None
    if index + 1 < len(chain):

      def next_cb(n: Node) -> Any:
        return self._invoke(chain, n, ctx, index + 1)

    return chain[index](node, ctx.chained(next_cb))

  def _context(
    self,
    topdown: Any,
    scope: ScopeInfo,
    bottomup: Optional[List[Any]] = None,
    skip: Any = None,
  ) -> VisitContext:
    return VisitContext(
      mode=self.mode,
      topdown=topdown,
      bottomup=bottomup,
      scope=scope,
      flags=self.flags,
      env=self.env,
      params=self.params,
      _skip=skip,
    )

  def _finish(self, result: Any, node: Node, slot: HandlerSlot, fresh: Optional[Node] = None) -> Any:
    if self.mode is TraversalMode.REWRITE:
      if not isinstance(result, Node):
        raise HandlerResultError(slot.value, node.kind.value, self.mode.value, result)
      # Anything other than the freshly built node may be shared with another tree.
      return result if result is fresh else result.clone()
    if not isinstance(result, Mapping):
      raise HandlerResultError(slot.value, node.kind.value, self.mode.value, result)
    return result

  # --- Target resolution ---

  def _is_registered(self, identity: Any) -> bool:
    return (
      self.config.target_chain(HandlerSlot.CALL, identity) is not None
      or self.config.target_chain(HandlerSlot.TOPDOWN, identity) is not None
    )

  def _lookup(self, name: str) -> Any:
    if self.env is not None and name in self.env:
      return self.env[name]
    return _NO_TARGET

  def _resolve_target(self, node: Call, scope: ScopeInfo) -> Any:
    """
    Resolves the callee of ``node`` to a registered target, or ``_NO_TARGET``.

    Only bare symbols and primitives are resolvable. Other callee expressions
    use the generic chains without a diagnostic.
    """
    if not self.config.has_targets():
      return _NO_TARGET

    callee = node.callee
    if isinstance(callee, Primitive):
      identity = callee.ref
    elif isinstance(callee, Symbol):
      name = callee.name
      identity = self._lookup(name)
      if scope.is_bound(name):
        if identity is not _NO_TARGET and self._is_registered(identity):
          logger.debug("Target dispatch for '%s' suppressed by a possible local binding", name)
          self._warn(
            "warn_possible_local_shadow",
            PossibleLocalShadowWarning,
            f"'{name}' may be bound locally; target-specific handlers for it were not applied.",
          )
        return _NO_TARGET
      if identity is _NO_TARGET:
        logger.debug("Callee '%s' not found in the environment", name)
        self._warn(
          "warn_unknown_callee",
          UnknownCalleeWarning,
          f"Could not resolve the function '{name}'; only generic handlers apply.",
        )
        return _NO_TARGET
    else:
      return _NO_TARGET

    if not self._is_registered(identity):
      return _NO_TARGET
    logger.debug("Target dispatch for %r", identity)
    return identity

  def _warn(self, flag: str, category: type, message: str) -> None:
    if self.flags.enabled(flag):
      warnings.warn(message, category, stacklevel=_caller_stacklevel())


def _caller_stacklevel() -> int:
  """Stack level of the first frame outside the exprflow package, relative to ``_warn``."""
  # Frame 0 is this function, frame 1 is ``_warn`` (stacklevel 1).
  frame = sys._getframe(1)
  level = 1
  while frame is not None and frame.f_globals.get("__name__", "").startswith("exprflow."):
    frame = frame.f_back
    level += 1
  return level
