"""
Public traversal entry points.

Typical use::

    fn = exprflow.rewrite(my_function)        # annotate scopes
    fn = exprflow.rewrite_with(fn, config_a)  # output is annotated again,
    fn = exprflow.rewrite_with(fn, config_b)  # so passes chain

    found = exprflow.analyse_with(exprflow.analyse(my_function), collect_symbols)

``analyse``/``rewrite`` accept a ``Function`` or a plain Python callable (read
through the Python front end).
"""

import logging
from typing import Any, Callable, Mapping, Optional, Union

from exprflow.analysis.scope import ScopeAnalyzer
from exprflow.config import ScopePolicy, WarningFlags
from exprflow.core.callbacks import CallbackConfig
from exprflow.core.engine import TraversalEngine
from exprflow.core.nodes import AnnotatedFunction, Function, Node
from exprflow.enums import TraversalMode
from exprflow.errors import ConfigurationError
from exprflow.frontend.reader import function_from_callable

logger = logging.getLogger(__name__)

FunctionLike = Union[Function, Callable[..., Any]]


def _as_function(function: FunctionLike) -> Function:
  if isinstance(function, Function):
    return function
  if callable(function):
    return function_from_callable(function)
  raise TypeError(f"Expected a Function or a Python function, got {type(function).__name__}")


def _check_mode(config: CallbackConfig, expected: TraversalMode) -> None:
  if config.mode is not expected:
    raise ConfigurationError(
      f"A {config.mode.value} configuration cannot drive a {expected.value} traversal; "
      f"start from default_{expected.value}_config()."
    )


def _ensure_annotated(function: Function, policy: Optional[ScopePolicy]) -> AnnotatedFunction:
  if isinstance(function, AnnotatedFunction) and policy is None:
    return function
  return ScopeAnalyzer(policy).annotate(function)


def analyse(function: FunctionLike, policy: Optional[ScopePolicy] = None) -> AnnotatedFunction:
  """
  Prepares a function for analysis traversals by running the scope pre-pass.

  Args:
      function: A Function or a Python function.
      policy: Scope heuristics (default ``ScopePolicy()``).

  Returns:
      AnnotatedFunction: A stamped copy.
  """
  return ScopeAnalyzer(policy).annotate(_as_function(function))


def rewrite(function: FunctionLike, policy: Optional[ScopePolicy] = None) -> AnnotatedFunction:
  """Prepares a function for rewrite traversals. Same pre-pass as ``analyse``."""
  return ScopeAnalyzer(policy).annotate(_as_function(function))


def analyse_with(
  function: Function,
  config: CallbackConfig,
  flags: Optional[WarningFlags] = None,
  topdown: Any = None,
  policy: Optional[ScopePolicy] = None,
  **params: Any,
) -> Mapping[str, Any]:
  """
  Runs an analysis traversal over the function body.

  An unannotated Function is annotated first.

  Args:
      function: The (annotated) function.
      config: An analysis configuration.
      flags: Warning flags (default: all enabled).
      topdown: Initial topdown information (default: ``{}``).
      policy: Scope heuristics, used when (re-)annotation is needed.
      **params: Extra named parameters exposed to handlers via ``ctx.params``.

  Returns:
      Mapping: The aggregated result for the body.

  Raises:
      ConfigurationError: If ``config`` is not an analysis configuration or a
          handler returns a non-mapping.
  """
  _check_mode(config, TraversalMode.ANALYSE)
  annotated = _ensure_annotated(function, policy)
  logger.debug("Analysing %s", annotated.name or "<anonymous>")
  engine = TraversalEngine(config, flags=flags, env=annotated.env, params=params)
  return engine.run(annotated.body, topdown=topdown, scope=annotated.scope)


def rewrite_with(
  function: Function,
  config: CallbackConfig,
  flags: Optional[WarningFlags] = None,
  topdown: Any = None,
  policy: Optional[ScopePolicy] = None,
  **params: Any,
) -> AnnotatedFunction:
  """
  Runs a rewrite traversal over the function body.

  The rewritten function is annotated again from scratch, so the result can
  feed the next ``rewrite_with`` or ``analyse_with`` directly.

  Args:
      function: The (annotated) function.
      config: A rewrite configuration.
      flags: Warning flags (default: all enabled).
      topdown: Initial topdown information (default: ``{}``).
      policy: Scope heuristics for annotation before and after the pass.
      **params: Extra named parameters exposed to handlers via ``ctx.params``.

  Returns:
      AnnotatedFunction: The rewritten, re-annotated function.

  Raises:
      ConfigurationError: If ``config`` is not a rewrite configuration or a
          handler returns a non-node.
  """
  _check_mode(config, TraversalMode.REWRITE)
  annotated = _ensure_annotated(function, policy)
  logger.debug("Rewriting %s", annotated.name or "<anonymous>")
  engine = TraversalEngine(config, flags=flags, env=annotated.env, params=params)
  body = engine.run(annotated.body, topdown=topdown, scope=annotated.scope)
  result = Function(params=annotated.params, body=body, env=annotated.env, name=annotated.name)
  return ScopeAnalyzer(policy).annotate(result)


def analyse_expr(
  expr: Node,
  config: CallbackConfig,
  topdown: Any = None,
  flags: Optional[WarningFlags] = None,
  env: Optional[Mapping[str, Any]] = None,
  **params: Any,
) -> Mapping[str, Any]:
  """
  Runs an analysis traversal over a bare expression.

  Scope information comes from the expression's metadata where present.
  """
  _check_mode(config, TraversalMode.ANALYSE)
  return TraversalEngine(config, flags=flags, env=env, params=params).run(expr, topdown=topdown)


def rewrite_expr(
  expr: Node,
  config: CallbackConfig,
  topdown: Any = None,
  flags: Optional[WarningFlags] = None,
  env: Optional[Mapping[str, Any]] = None,
  **params: Any,
) -> Node:
  """Runs a rewrite traversal over a bare expression. The result is not annotated."""
  _check_mode(config, TraversalMode.REWRITE)
  return TraversalEngine(config, flags=flags, env=env, params=params).run(expr, topdown=topdown)

