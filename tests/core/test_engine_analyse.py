"""
Tests for analysis traversals.

Covers visitation order, bottom-up merging, topdown propagation, skipping,
handler chaining and result validation.
"""

import pytest

from exprflow.core.callbacks import default_analysis_config, merge_analysis_handler
from exprflow.core.combinators import merge_bottomup
from exprflow.core.engine import TraversalEngine
from exprflow.core.nodes import Atomic, Call, Param, ParamList, Primitive, Symbol, call
from exprflow.errors import HandlerResultError


def run(config, expr, **kwargs):
  return TraversalEngine(config).run(expr, **kwargs)


def test_symbols_in_depth_first_order(symbol_config, example_function):
  found = run(symbol_config, example_function.body)
  assert found["symbols"] == ["a", "x", "y", "b", "x", "y", "a", "b"]


def test_symbol_counted_once_per_occurrence(symbol_config):
  expr = call("f", Symbol("x"), call("g", Symbol("x"), Symbol("y")), Symbol("x"))
  assert run(symbol_config, expr)["symbols"].count("x") == 3


def test_dedup_yields_distinct_names(symbol_config, example_function):
  found = run(symbol_config, example_function.body)
  assert set(found["symbols"]) == {"x", "y", "a", "b"}


def test_callee_is_not_traversed(symbol_config):
  expr = call("f", Symbol("x"))
  assert run(symbol_config, expr) == {"symbols": ["x"]}


def test_default_analysis_is_empty(example_function):
  assert run(default_analysis_config(), example_function.body) == {}


def test_leaf_handlers_see_empty_bottomup():
  seen = []

  def atomic(node, ctx):
    seen.append(ctx.bottomup)
    return {}

  run(default_analysis_config().with_atomic_handler(atomic), call("f", Atomic(1)))
  assert seen == [[]]


def test_call_handler_receives_child_results(symbol_config):
  received = []

  def on_call(node, ctx):
    received.append(list(ctx.bottomup))
    return merge_bottomup(ctx.bottomup)

  config = symbol_config.with_call_handler(on_call)
  run(config, call("f", Symbol("a"), Atomic(1), Symbol("b")))

  assert received == [[{"symbols": ["a"]}, {}, {"symbols": ["b"]}]]


def test_pairlist_children_are_defaults(symbol_config):
  params = ParamList((Param("x"), Param("y", Symbol("z")), Param("w", Atomic(0))))
  assert run(symbol_config, params) == {"symbols": ["z"]}


def test_primitive_handler():
  def on_primitive(node, ctx):
    return {"primitives": [node.name]}

  config = default_analysis_config().with_primitive_handler(on_primitive)
  expr = call("apply", Primitive(len), Symbol("xs"))
  assert run(config, expr) == {"primitives": ["len"]}


def test_topdown_information_flows_to_children():
  def depth(node, ctx):
    return {"depth": ctx.topdown.get("depth", 0) + 1}

  def record(node, ctx):
    return {"depths": [ctx.topdown.get("depth", 0)]}

  config = default_analysis_config().with_topdown_handler(depth).with_symbol_handler(record)
  expr = call("f", Symbol("a"), call("g", Symbol("b")))

  assert run(config, expr) == {"depths": [1, 2]}


def test_initial_topdown_value():
  def record(node, ctx):
    return {"seen": [ctx.topdown]}

  config = default_analysis_config().with_symbol_handler(record)
  assert run(config, Symbol("a")) == {"seen": [{}]}
  assert run(config, Symbol("a"), topdown="start") == {"seen": ["start"]}


def test_skip_prunes_subtree(symbol_config):
  def skip_quotes(node, ctx):
    if isinstance(node, Call) and node.is_call_to("quote"):
      ctx.skip({"skipped": ["quote"]})
    return ctx.next_cb(node)

  config = symbol_config.with_topdown_handler(skip_quotes)
  expr = call("f", Symbol("a"), call("quote", Symbol("b")), Symbol("c"))

  assert run(config, expr) == {"symbols": ["a", "c"], "skipped": ["quote"]}


def test_skip_bypasses_kind_handler():
  calls = []

  def on_call(node, ctx):
    calls.append(node.callee_name)
    return merge_analysis_handler(node, ctx)

  def skip_all(node, ctx):
    ctx.skip({"root": [True]})

  config = default_analysis_config().with_call_handler(on_call).with_topdown_handler(skip_all)
  assert run(config, call("f", call("g"))) == {"root": [True]}
  assert calls == []


def test_skip_outside_topdown_is_an_error():
  def bad(node, ctx):
    assert not ctx.can_skip
    ctx.skip({})

  config = default_analysis_config().with_symbol_handler(bad)
  with pytest.raises(RuntimeError, match="topdown"):
    run(config, Symbol("x"))


def test_chained_handler_runs_newest_first():
  order = []

  def older(node, ctx):
    order.append("older")
    return {"names": [node.name]}

  def newer(node, ctx):
    order.append("newer")
    return ctx.next_cb(node)

  config = default_analysis_config().with_symbol_handler(older).with_symbol_handler(newer)
  result = run(config, Symbol("x"))

  assert order == ["newer", "older"]
  assert result == run(default_analysis_config().with_symbol_handler(older), Symbol("x"))


def test_non_mapping_result_raises():
  config = default_analysis_config().with_symbol_handler(lambda node, ctx: ["x"])
  with pytest.raises(HandlerResultError) as excinfo:
    run(config, call("f", Symbol("x")))
  assert excinfo.value.slot == "symbol"
  assert excinfo.value.mode == "analyse"


def test_handler_exception_propagates():
  class Boom(Exception):
    pass

  def explode(node, ctx):
    raise Boom(node.name)

  config = default_analysis_config().with_symbol_handler(explode)
  with pytest.raises(Boom, match="x"):
    run(config, call("f", Atomic(1), Symbol("x")))


def test_params_reach_handlers():
  def record(node, ctx):
    return {ctx.param("key"): [node.name]}

  config = default_analysis_config().with_symbol_handler(record)
  engine = TraversalEngine(config, params={"key": "names"})
  assert engine.run(Symbol("x")) == {"names": ["x"]}
