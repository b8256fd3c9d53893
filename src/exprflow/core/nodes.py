"""
Expression Model.

This module defines the five expression shapes the traversal engine understands
and the function container the entry points consume.

Every node has a fixed shape: its kind and structural children never change
after construction. Each node instance also owns a mutable metadata side-table
(string key -> opaque value). The Scope Analyzer uses it to stamp scope
information, and rewrite handlers use it to carry provenance between passes.

Structural equality (``==``) ignores metadata.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional, Sequence, Tuple

from exprflow.enums import NodeKind

# Metadata key under which the Scope Analyzer stores a node's ScopeInfo.
SCOPE_KEY = "scope"


@dataclass(frozen=True)
class ScopeInfo:
  """
  Static binding information for one scope (a function body).

  Attributes:
      assigned: Names assigned in this scope (conservatively computed).
      bound: ``assigned`` plus the scope's parameters plus the enclosing scope's ``bound``.
  """

  assigned: frozenset = frozenset()
  bound: frozenset = frozenset()

  def is_bound(self, name: str) -> bool:
    """True if ``name`` may be bound locally and so shadow a global of the same name."""
    return name in self.bound


EMPTY_SCOPE = ScopeInfo()


class Node:
  """
  Base class for expression nodes.

  Subclasses are frozen dataclasses. The metadata table is attached outside the
  dataclass fields so it neither participates in equality nor blocks
  positional construction.
  """

  kind: ClassVar[NodeKind]

  def __post_init__(self) -> None:
    object.__setattr__(self, "_metadata", {})

  # --- Structure ---

  def children(self) -> Tuple["Node", ...]:
    """Ordered child expressions. Empty for leaves."""
    return ()

  def with_children(self, new_children: Sequence["Node"]) -> "Node":
    """
    Returns a node of the same kind with ``new_children`` in place of ``children()``.

    Metadata is copied onto the new node.

    Raises:
        ValueError: If the number of children does not match.
    """
    if len(new_children) != 0:
      raise ValueError(f"{self.kind.value} nodes have no children")
    return self._adopt(self._rebuild())

  def clone(self) -> "Node":
    """
    Deep structural copy.

    Each copied node gets its own metadata table. The metadata values themselves
    are shared and treated as immutable.
    """
    return self.with_children([child.clone() for child in self.children()])

  def _rebuild(self) -> "Node":
    raise NotImplementedError

  def _adopt(self, other: "Node") -> "Node":
    other._metadata.update(self._metadata)
    return other

  # --- Metadata ---

  @property
  def metadata(self) -> Dict[str, Any]:
    """The live metadata side-table."""
    return self._metadata

  def metadata_get(self, key: str, default: Any = None) -> Any:
    """Reads a metadata value. Absent keys return ``default``; absence is not an error."""
    return self._metadata.get(key, default)

  def metadata_set(self, key: str, value: Any) -> "Node":
    """Stores a metadata value and returns the node for chaining."""
    self._metadata[key] = value
    return self

  @property
  def scope(self) -> Optional[ScopeInfo]:
    """The ScopeInfo stamped by the Scope Analyzer, if any."""
    return self._metadata.get(SCOPE_KEY)


@dataclass(frozen=True)
class Atomic(Node):
  """A literal constant."""

  kind: ClassVar[NodeKind] = NodeKind.ATOMIC
  value: Any

  def __eq__(self, other: object) -> bool:
    # 1, 1.0 and True are different literals
    if other.__class__ is not self.__class__:
      return NotImplemented
    return type(self.value) is type(other.value) and self.value == other.value

  def _rebuild(self) -> "Atomic":
    return Atomic(self.value)


@dataclass(frozen=True)
class Symbol(Node):
  """A variable reference."""

  kind: ClassVar[NodeKind] = NodeKind.SYMBOL
  name: str

  def _rebuild(self) -> "Symbol":
    return Symbol(self.name)


@dataclass(frozen=True)
class Primitive(Node):
  """A direct reference to a builtin function object."""

  kind: ClassVar[NodeKind] = NodeKind.PRIMITIVE
  ref: Any

  @property
  def name(self) -> str:
    return getattr(self.ref, "__name__", repr(self.ref))

  def _rebuild(self) -> "Primitive":
    return Primitive(self.ref)


@dataclass(frozen=True)
class Param:
  """One formal parameter: a name and an optional default expression."""

  name: str
  default: Optional[Node] = None


@dataclass(frozen=True)
class ParamList(Node):
  """
  An ordered parameter list.

  Its children are the default expressions of the parameters that have one,
  in declaration order.
  """

  kind: ClassVar[NodeKind] = NodeKind.PAIRLIST
  params: Tuple[Param, ...] = ()

  def __post_init__(self) -> None:
    super().__post_init__()
    object.__setattr__(self, "params", tuple(self.params))

  @property
  def names(self) -> Tuple[str, ...]:
    return tuple(p.name for p in self.params)

  def children(self) -> Tuple[Node, ...]:
    return tuple(p.default for p in self.params if p.default is not None)

  def with_children(self, new_children: Sequence[Node]) -> "ParamList":
    if len(new_children) != len(self.children()):
      raise ValueError(f"pairlist expects {len(self.children())} default expressions, got {len(new_children)}")
    remaining = iter(new_children)
    params = [Param(p.name, next(remaining)) if p.default is not None else p for p in self.params]
    return self._adopt(ParamList(tuple(params)))


@dataclass(frozen=True)
class Call(Node):
  """
  A call: a callee expression applied to ordered arguments.

  ``arg_names`` runs parallel to ``args``; unnamed arguments hold ``None``.
  ``children()`` is the callee followed by the arguments.
  """

  kind: ClassVar[NodeKind] = NodeKind.CALL
  callee: Node
  args: Tuple[Node, ...] = ()
  arg_names: Tuple[Optional[str], ...] = field(default=())

  def __post_init__(self) -> None:
    super().__post_init__()
    args = tuple(self.args)
    names = tuple(self.arg_names)
    if not names:
      names = (None,) * len(args)
    if len(names) != len(args):
      raise ValueError(f"call has {len(args)} arguments but {len(names)} argument names")
    object.__setattr__(self, "args", args)
    object.__setattr__(self, "arg_names", names)

  @property
  def callee_name(self) -> Optional[str]:
    """The callee's name when it is a bare symbol, else None."""
    if isinstance(self.callee, Symbol):
      return self.callee.name
    return None

  def is_call_to(self, *names: str) -> bool:
    return self.callee_name in names

  def children(self) -> Tuple[Node, ...]:
    return (self.callee,) + self.args

  def with_children(self, new_children: Sequence[Node]) -> "Call":
    if len(new_children) != len(self.args) + 1:
      raise ValueError(f"call expects {len(self.args) + 1} children, got {len(new_children)}")
    return self._adopt(Call(new_children[0], tuple(new_children[1:]), self.arg_names))

  def with_args(self, new_args: Sequence[Node]) -> "Call":
    """Same callee and argument names, new arguments."""
    return self.with_children([self.callee, *new_args])


def call(callee: Any, *args: Node, **kwargs: Node) -> Call:
  """
  Shorthand constructor. A string callee becomes a Symbol.

  Example::

      call("+", Symbol("x"), Atomic(1))
  """
  target = Symbol(callee) if isinstance(callee, str) else callee
  names = [None] * len(args) + list(kwargs.keys())
  return Call(target, tuple(args) + tuple(kwargs.values()), tuple(names))


@dataclass
class Function:
  """
  A function as the core sees it.

  Attributes:
      params: The formal parameters.
      body: The body expression.
      env: Lexical environment used to resolve call targets. Opaque apart from
          name lookup (``name in env`` / ``env[name]``).
      name: Optional display name.
  """

  params: ParamList
  body: Node
  env: Optional[Mapping[str, Any]] = None
  name: Optional[str] = None


@dataclass
class AnnotatedFunction(Function):
  """
  A Function whose body has been stamped by the Scope Analyzer.

  Attributes:
      scope: ScopeInfo of the function's own body.
  """

  scope: ScopeInfo = EMPTY_SCOPE
