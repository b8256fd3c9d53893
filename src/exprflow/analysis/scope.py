"""
Static Scope Analysis.

This module provides the ``ScopeAnalyzer``, the pre-pass that runs before any
user traversal. It computes, per function scope:

1.  **assigned**: names assigned in the scope itself.
2.  **bound**: ``assigned``, the scope's parameters, and the enclosing scope's ``bound``.

It works in two passes per scope:

- **Collect**: an analysis traversal over the scope's parameter defaults and
  body. Assignment-shaped calls and loop variables contribute names. Nested
  function literals and the arguments of non-standard-evaluation callees are
  skipped (see ``ScopePolicy``).
- **Stamp**: every node of the scope receives the finalized ``ScopeInfo`` under
  the ``SCOPE_KEY`` metadata key. Nested function literals are collected and
  stamped recursively with the current ``bound`` as their enclosing set.

The result over-approximates: a name may be reported as bound when it is not
at runtime, but a real local binding is never missed. One exception is
deliberate: assignments inside arguments to non-standard-evaluation callees
are excluded because they usually run in another environment.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from exprflow.config import ScopePolicy, WarningFlags
from exprflow.core.callbacks import CallbackConfig, default_analysis_config
from exprflow.core.combinators import merge_bottomup
from exprflow.core.context import VisitContext
from exprflow.core.engine import TraversalEngine
from exprflow.core.nodes import (
  EMPTY_SCOPE,
  SCOPE_KEY,
  AnnotatedFunction,
  Call,
  Function,
  Node,
  ParamList,
  ScopeInfo,
  Symbol,
)

logger = logging.getLogger(__name__)

_ASSIGNED = "assigned"


class ScopeAnalyzer:
  """
  Computes and attaches ScopeInfo for a function and its nested functions.
  """

  def __init__(self, policy: Optional[ScopePolicy] = None):
    """
    Args:
        policy: Scope heuristics. Defaults to ``ScopePolicy()``.
    """
    self.policy = policy or ScopePolicy()
    # Target-specific dispatch is meaningless before scopes exist.
    self._flags = WarningFlags(warn_unknown_callee=False, warn_possible_local_shadow=False)
    self._config = self._collection_config()

  # --- Collect ---

  def _collection_config(self) -> CallbackConfig:
    policy = self.policy

    def opaque_scopes(node: Node, ctx: VisitContext) -> Any:
      if isinstance(node, Call) and node.is_call_to(policy.function_form, *policy.nse_functions):
        ctx.skip({})
      return ctx.next_cb(node)

    def record_bindings(node: Node, ctx: VisitContext) -> Dict[str, Any]:
      found = ctx.next_cb(node)
      name = self.bound_name(node)
      if name is None:
        return found
      return merge_bottomup([{_ASSIGNED: [name]}, found])

    return default_analysis_config().with_topdown_handler(opaque_scopes).with_call_handler(record_bindings)

  def bound_name(self, node: Node) -> Optional[str]:
    """
    The name a call binds in the current scope, if any.

    ``x <- v`` binds ``x``. ``for (x in s) ...`` binds ``x``. With
    ``count_replacement_targets``, ``x[i] <- v`` and ``f(x) <- v`` bind ``x``.
    """
    if not isinstance(node, Call) or not node.args:
      return None
    target = node.args[0]

    if node.is_call_to(*self.policy.loop_forms):
      return target.name if isinstance(target, Symbol) else None

    if not node.is_call_to(*self.policy.assignment_forms):
      return None
    if isinstance(target, Symbol):
      return target.name
    if self.policy.count_replacement_targets:
      while isinstance(target, Call) and target.args:
        target = target.args[0]
      if isinstance(target, Symbol):
        return target.name
    return None

  def collect(self, params: ParamList, body: Node, enclosing: ScopeInfo = EMPTY_SCOPE) -> ScopeInfo:
    """
    Computes the ScopeInfo of one function scope without stamping it.

    Args:
        params: The scope's formal parameters. Default expressions count as part of the scope.
        body: The scope's body.
        enclosing: ScopeInfo of the enclosing scope.

    Returns:
        ScopeInfo: The finalized assigned and bound sets.
    """
    engine = TraversalEngine(self._config, flags=self._flags)
    found = merge_bottomup([engine.run(params), engine.run(body)])
    assigned = frozenset(found.get(_ASSIGNED, []))
    bound = assigned | frozenset(params.names) | enclosing.bound
    return ScopeInfo(assigned=assigned, bound=bound)

  # --- Stamp ---

  def function_parts(self, node: Node) -> Optional[Tuple[ParamList, Node]]:
    """
    Splits a function literal into (params, body), or returns None.

    ``function(ParamList, body, ...)`` and ``function(body)`` are recognised.
    """
    if not isinstance(node, Call) or not node.is_call_to(self.policy.function_form):
      return None
    if len(node.args) >= 2 and isinstance(node.args[0], ParamList):
      return node.args[0], node.args[1]
    if len(node.args) == 1 and not isinstance(node.args[0], ParamList):
      return ParamList(), node.args[0]
    return None

  def stamp(self, node: Node, info: ScopeInfo) -> None:
    """
    Attaches ``info`` to ``node`` and its descendants, opening nested scopes
    at function literals.
    """
    node.metadata_set(SCOPE_KEY, info)
    parts = self.function_parts(node)
    if parts is None:
      for child in node.children():
        self.stamp(child, info)
      return

    params, body = parts
    inner = self.collect(params, body, enclosing=info)
    logger.debug("Nested scope: assigned=%s bound=%s", sorted(inner.assigned), sorted(inner.bound))
    for child in node.children():
      self.stamp(child, inner if child is params or child is body else info)

  # --- Entry point ---

  def annotate(self, function: Function) -> AnnotatedFunction:
    """
    Annotates a copy of ``function``.

    The input is not modified. Annotations already present on the input are
    replaced, never updated incrementally.

    Returns:
        AnnotatedFunction: The copy, with every node stamped.
    """
    params = function.params.clone()
    body = function.body.clone()
    info = self.collect(params, body)
    logger.debug(
      "Scope of %s: assigned=%s bound=%s",
      function.name or "<anonymous>",
      sorted(info.assigned),
      sorted(info.bound),
    )
    self.stamp(params, info)
    self.stamp(body, info)
    return AnnotatedFunction(params=params, body=body, env=function.env, name=function.name, scope=info)


def annotate(function: Function, policy: Optional[ScopePolicy] = None) -> AnnotatedFunction:
  """Runs the scope pre-pass on a copy of ``function``."""
  return ScopeAnalyzer(policy).annotate(function)
