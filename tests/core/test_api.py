"""
Tests for the public entry points: `analyse`, `rewrite`, `analyse_with`,
`rewrite_with` and their bare-expression variants.
"""

import warnings

import pytest

from exprflow.core.api import analyse, analyse_expr, analyse_with, rewrite, rewrite_expr, rewrite_with
from exprflow.core.callbacks import default_analysis_config, default_rewrite_config
from exprflow.core.nodes import AnnotatedFunction, Atomic, Function, Param, ParamList, Symbol, call
from exprflow.errors import ConfigurationError, PossibleLocalShadowWarning


def example(x, y):
  a = x + y
  b = x - y
  return 2 * a - b**2


def sums_lengths(xs, ys):
  return len(xs) + len(ys)


def shadows_len(xs):
  len = 3
  return len(xs)


def between(a, b, c):
  return a < b < c


def count_len(node, ctx):
  return {"len_calls": [node.callee_name]}


def test_end_to_end_symbol_collection(symbol_config):
  found = analyse_with(analyse(example), symbol_config)

  assert found["symbols"] == ["a", "x", "y", "b", "x", "y", "a", "b"]
  assert set(found["symbols"]) == {"x", "y", "a", "b"}


def test_chained_comparison_visits_each_operand_once(symbol_config):
  assert analyse_with(analyse(between), symbol_config) == {"symbols": ["a", "b", "c"]}


def test_repeated_runs_are_consistent(symbol_config):
  fn = analyse(example)
  assert analyse_with(fn, symbol_config) == analyse_with(fn, symbol_config)


def test_hand_built_and_read_functions_agree(symbol_config, example_function):
  assert analyse_with(analyse(example_function), symbol_config) == analyse_with(analyse(example), symbol_config)


def test_analyse_returns_annotated_copy(example_function):
  fn = analyse(example_function)

  assert isinstance(fn, AnnotatedFunction)
  assert fn.scope.assigned == {"a", "b"}
  assert fn.scope.bound == {"a", "b", "x", "y"}
  assert fn.body.scope is fn.scope
  assert example_function.body.scope is None


def test_analyse_with_annotates_plain_functions(symbol_config, example_function):
  assert analyse_with(example_function, symbol_config)["symbols"][0] == "a"


def test_identity_rewrite_is_structurally_equal(example_function):
  fn = rewrite_with(rewrite(example_function), default_rewrite_config())

  assert fn.body == example_function.body
  assert fn.params == example_function.params
  assert fn.name == "example"


def test_rewrite_passes_chain():
  def rename_a(node, ctx):
    return Symbol("total") if node.name == "a" else node

  def double_literals(node, ctx):
    return Atomic(node.value * 2)

  first = default_rewrite_config().with_symbol_handler(rename_a)
  second = default_rewrite_config().with_atomic_handler(double_literals)

  fn = rewrite_with(rewrite_with(rewrite(example), first), second)

  assert "total" in fn.scope.assigned
  assert "a" not in fn.scope.bound
  expected_tail = call("return", call("-", call("*", Atomic(4), Symbol("total")), call("**", Symbol("b"), Atomic(4))))
  assert fn.body.args[-1] == expected_tail


def test_rewrite_leaves_input_untouched(example_function):
  before = example_function.body.clone()
  config = default_rewrite_config().with_symbol_handler(lambda node, ctx: Symbol(node.name + "_"))

  rewrite_with(rewrite(example_function), config)

  assert example_function.body == before


def test_target_handler_on_python_builtin():
  config = default_analysis_config().add_call_handler(len, count_len)

  with warnings.catch_warnings():
    warnings.simplefilter("error")
    found = analyse_with(analyse(sums_lengths), config)

  assert found == {"len_calls": ["len", "len"]}


def test_shadowed_builtin_is_not_dispatched():
  config = default_analysis_config().add_call_handler(len, count_len)

  with pytest.warns(PossibleLocalShadowWarning, match="len"):
    found = analyse_with(analyse(shadows_len), config)

  assert found == {}


def test_closure_variables_resolve():
  def make():
    local_helper = sorted

    def inner(xs):
      return local_helper(xs)

    return inner

  config = default_analysis_config().add_call_handler(sorted, lambda node, ctx: {"hits": [1]})
  with warnings.catch_warnings():
    warnings.simplefilter("error")
    assert analyse_with(analyse(make()), config) == {"hits": [1]}


def test_mode_mismatch_raises(example_function):
  with pytest.raises(ConfigurationError, match="analyse"):
    analyse_with(analyse(example_function), default_rewrite_config())
  with pytest.raises(ConfigurationError, match="rewrite"):
    rewrite_with(rewrite(example_function), default_analysis_config())


def test_analyse_rejects_non_functions():
  with pytest.raises(TypeError):
    analyse(42)


def test_extra_params_reach_handlers(example_function):
  def record(node, ctx):
    return {ctx.param("bucket", "default"): [node.name]}

  config = default_analysis_config().with_symbol_handler(record)
  found = analyse_with(analyse(example_function), config, bucket="names")

  assert set(found) == {"names"}


def test_initial_topdown(example_function):
  def record(node, ctx):
    return {"labels": [ctx.topdown]}

  config = default_analysis_config().with_symbol_handler(record)
  found = analyse_with(analyse(example_function), config, topdown="root")

  assert set(found["labels"]) == {"root"}


def test_params_are_not_traversed():
  params = ParamList((Param("x", Symbol("default_value")),))
  fn = analyse(Function(params=params, body=call("f", Symbol("x")), env={}, name="f"))
  config = default_analysis_config().with_symbol_handler(lambda node, ctx: {"s": [node.name]})

  assert analyse_with(fn, config) == {"s": ["x"]}


def test_expression_entry_points(symbol_config):
  expr = call("+", Symbol("x"), Atomic(1))

  assert analyse_expr(expr, symbol_config) == {"symbols": ["x"]}
  assert rewrite_expr(expr, default_rewrite_config()) == expr
  with pytest.raises(ConfigurationError):
    rewrite_expr(expr, symbol_config)
