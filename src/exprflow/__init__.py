"""
exprflow Package.

A configurable traversal toolkit for expression trees. Analyses fold
information bottom-up, rewrites rebuild trees, and both can dispatch handlers
on the function a call resolves to, guarded by a conservative scope analysis.

Usage
-----

Collect symbols
^^^^^^^^^^^^^^^

.. code-block:: python

    import exprflow

    def f(x, y):
        a = x + y
        return a * x

    def record(node, ctx):
        return {"symbols": [node.name]}

    config = exprflow.default_analysis_config().with_symbol_handler(record)
    found = exprflow.analyse_with(exprflow.analyse(f), config)
    # found["symbols"] == ["a", "x", "y", "a", "x"]

Rewrite calls to a known function
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    def to_max(node, ctx):
        return node.with_children((exprflow.Symbol("max"),) + node.args)

    config = exprflow.default_rewrite_config().add_call_handler(min, to_max)
    fn = exprflow.rewrite_with(exprflow.rewrite(f), config)
"""

from exprflow.analysis.scope import ScopeAnalyzer, annotate
from exprflow.config import EngineSettings, ScopePolicy, WarningFlags
from exprflow.core.api import analyse, analyse_expr, analyse_with, rewrite, rewrite_expr, rewrite_with
from exprflow.core.callbacks import (
  CallbackConfig,
  add_call_handler,
  add_topdown_handler,
  default_analysis_config,
  default_config,
  default_rewrite_config,
  empty_analysis_handler,
  identity_rewrite_handler,
  merge_analysis_handler,
  passthrough_topdown_handler,
  with_atomic_handler,
  with_call_handler,
  with_handler,
  with_pairlist_handler,
  with_primitive_handler,
  with_symbol_handler,
  with_topdown_handler,
)
from exprflow.core.combinators import collect_from_args, merge_bottomup
from exprflow.core.context import VisitContext
from exprflow.core.nodes import (
  EMPTY_SCOPE,
  SCOPE_KEY,
  AnnotatedFunction,
  Atomic,
  Call,
  Function,
  Node,
  Param,
  ParamList,
  Primitive,
  ScopeInfo,
  Symbol,
  call,
)
from exprflow.enums import HandlerSlot, NodeKind, TraversalMode
from exprflow.errors import (
  ConfigurationError,
  HandlerResultError,
  PossibleLocalShadowWarning,
  TraversalWarning,
  UnknownCalleeWarning,
  UnsupportedSyntaxError,
)
from exprflow.frontend import SYNTAX_ENV, deparse, function_from_callable, read_function

__version__ = "0.1.0"

__all__ = [
  "AnnotatedFunction",
  "Atomic",
  "Call",
  "CallbackConfig",
  "ConfigurationError",
  "EMPTY_SCOPE",
  "EngineSettings",
  "Function",
  "HandlerResultError",
  "HandlerSlot",
  "Node",
  "NodeKind",
  "Param",
  "ParamList",
  "PossibleLocalShadowWarning",
  "Primitive",
  "SCOPE_KEY",
  "SYNTAX_ENV",
  "ScopeAnalyzer",
  "ScopeInfo",
  "ScopePolicy",
  "Symbol",
  "TraversalMode",
  "TraversalWarning",
  "UnknownCalleeWarning",
  "UnsupportedSyntaxError",
  "VisitContext",
  "WarningFlags",
  "__version__",
  "add_call_handler",
  "add_topdown_handler",
  "analyse",
  "analyse_expr",
  "analyse_with",
  "annotate",
  "call",
  "collect_from_args",
  "default_analysis_config",
  "default_config",
  "default_rewrite_config",
  "deparse",
  "empty_analysis_handler",
  "function_from_callable",
  "identity_rewrite_handler",
  "merge_analysis_handler",
  "merge_bottomup",
  "passthrough_topdown_handler",
  "read_function",
  "rewrite",
  "rewrite_expr",
  "rewrite_with",
  "with_atomic_handler",
  "with_call_handler",
  "with_handler",
  "with_pairlist_handler",
  "with_primitive_handler",
  "with_symbol_handler",
  "with_topdown_handler",
]
