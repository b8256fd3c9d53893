"""
Tests for result combinators: `merge_bottomup` and `collect_from_args`.
"""

from exprflow.core.combinators import collect_from_args, merge_bottomup
from exprflow.core.nodes import Atomic, Symbol, call


def test_merge_concatenates_left_to_right():
  merged = merge_bottomup([{"a": [1]}, {"a": [2], "b": [3]}, {}])
  assert merged == {"a": [1, 2], "b": [3]}


def test_merge_of_nothing_is_empty():
  assert merge_bottomup([]) == {}
  assert merge_bottomup([{}, None, {}]) == {}


def test_merge_drops_unnamed_entries():
  assert merge_bottomup([{"": [1], None: [2], "a": [3]}]) == {"a": [3]}


def test_merge_wraps_scalars():
  assert merge_bottomup([{"a": 1}, {"a": (2, 3)}]) == {"a": [1, 2, 3]}


def test_merge_preserves_duplicates():
  assert merge_bottomup([{"x": ["x"]}, {"x": ["x"]}]) == {"x": ["x", "x"]}


def test_collect_from_args_concatenates_metadata():
  first = Symbol("a").metadata_set("deps", ["a"])
  second = Atomic(1)
  third = Symbol("b").metadata_set("deps", ["b", "c"])
  node = call("f", first, second, third)

  assert collect_from_args(node, "deps") == ["a", "b", "c"]


def test_collect_from_args_predicate_and_callee():
  callee = Symbol("f").metadata_set("deps", ["f"])
  node = call(callee, Symbol("a").metadata_set("deps", ["a"]), Atomic(1).metadata_set("deps", "one"))

  assert collect_from_args(node, "deps", predicate=lambda n: isinstance(n, Symbol)) == ["a"]
  assert collect_from_args(node, "deps", include_callee=True) == ["f", "a", "one"]
