"""
Tests for the Expression Model.

Verifies:
1. Structural equality ignores metadata.
2. `with_children` preserves kind and metadata and validates arity.
3. `clone` produces an independent deep copy.
"""

import pytest

from exprflow.core.nodes import (
  SCOPE_KEY,
  Atomic,
  Call,
  Param,
  ParamList,
  Primitive,
  ScopeInfo,
  Symbol,
  call,
)
from exprflow.enums import NodeKind


def test_kinds():
  assert Atomic(1).kind is NodeKind.ATOMIC
  assert Symbol("x").kind is NodeKind.SYMBOL
  assert Primitive(len).kind is NodeKind.PRIMITIVE
  assert ParamList().kind is NodeKind.PAIRLIST
  assert call("f").kind is NodeKind.CALL
  assert NodeKind.CALL.is_composite
  assert not NodeKind.SYMBOL.is_composite


def test_equality_ignores_metadata():
  a = call("+", Symbol("x"), Atomic(1))
  b = call("+", Symbol("x"), Atomic(1))
  a.metadata_set("origin", "pass-1")
  assert a == b
  assert a.metadata_get("origin") == "pass-1"
  assert b.metadata_get("origin") is None


def test_literal_equality_respects_value_type():
  assert Atomic(1) == Atomic(1)
  assert Atomic(1) != Atomic(True)
  assert Atomic(1) != Atomic(1.0)
  assert call("f", Atomic(1)) != call("f", Atomic(True))
  assert len({Atomic(1), Atomic(True), Atomic(1.0)}) == 3


def test_metadata_absent_key_returns_default():
  node = Symbol("x")
  assert node.metadata_get("missing") is None
  assert node.metadata_get("missing", 42) == 42
  assert node.scope is None


def test_metadata_set_returns_node():
  node = Symbol("x")
  assert node.metadata_set("k", 1) is node


def test_call_helper_builds_named_arguments():
  node = call("f", Symbol("a"), b=Atomic(2))
  assert node.callee == Symbol("f")
  assert node.args == (Symbol("a"), Atomic(2))
  assert node.arg_names == (None, "b")
  assert node.callee_name == "f"
  assert node.is_call_to("g", "f")


def test_call_argument_names_must_match():
  with pytest.raises(ValueError):
    Call(Symbol("f"), (Atomic(1),), ("a", "b"))


def test_call_children_include_callee():
  node = call("f", Atomic(1), Atomic(2))
  assert node.children() == (Symbol("f"), Atomic(1), Atomic(2))


def test_complex_callee_has_no_name():
  node = Call(call("get_fn"), (Atomic(1),))
  assert node.callee_name is None


def test_with_children_preserves_kind_and_metadata():
  node = call("f", Atomic(1), k=Atomic(2))
  node.metadata_set("tag", "t")

  rebuilt = node.with_children([Symbol("g"), Atomic(3), Atomic(4)])

  assert rebuilt.kind is NodeKind.CALL
  assert rebuilt.callee == Symbol("g")
  assert rebuilt.arg_names == (None, "k")
  assert rebuilt.metadata_get("tag") == "t"
  assert rebuilt is not node


def test_with_children_arity_mismatch():
  with pytest.raises(ValueError):
    call("f", Atomic(1)).with_children([Symbol("f")])
  with pytest.raises(ValueError):
    Symbol("x").with_children([Atomic(1)])


def test_with_args_keeps_callee():
  node = call("f", Atomic(1))
  assert node.with_args([Atomic(9)]) == call("f", Atomic(9))


def test_pairlist_children_are_defaults():
  params = ParamList((Param("x"), Param("y", Atomic(1)), Param("z", Symbol("x"))))
  assert params.names == ("x", "y", "z")
  assert params.children() == (Atomic(1), Symbol("x"))

  rebuilt = params.with_children([Atomic(2), Symbol("w")])
  assert rebuilt.params == (Param("x"), Param("y", Atomic(2)), Param("z", Symbol("w")))


def test_pairlist_arity_mismatch():
  with pytest.raises(ValueError):
    ParamList((Param("x", Atomic(1)),)).with_children([])


def test_primitive_name():
  assert Primitive(len).name == "len"


def test_clone_is_deep_and_independent():
  inner = Symbol("x")
  tree = call("f", call("g", inner))
  tree.metadata_set("k", "outer")
  inner.metadata_set("k", "inner")

  copy = tree.clone()

  assert copy == tree
  assert copy is not tree
  assert copy.args[0] is not tree.args[0]
  assert copy.args[0].args[0] is not inner
  assert copy.metadata_get("k") == "outer"
  assert copy.args[0].args[0].metadata_get("k") == "inner"

  copy.metadata_set("k", "changed")
  assert tree.metadata_get("k") == "outer"


def test_clone_shares_metadata_values():
  info = ScopeInfo(assigned=frozenset({"a"}), bound=frozenset({"a"}))
  node = Symbol("a").metadata_set(SCOPE_KEY, info)
  assert node.clone().scope is info


def test_scope_info_is_bound():
  info = ScopeInfo(assigned=frozenset({"a"}), bound=frozenset({"a", "x"}))
  assert info.is_bound("x")
  assert not info.is_bound("y")
