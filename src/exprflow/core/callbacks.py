"""
Callback Registry.

A ``CallbackConfig`` holds one handler chain per node kind, one generic topdown
chain, and per-call-target chains for call and topdown dispatch.

Chains are singly linked: installing a handler allocates a new ``HandlerLink``
whose ``previous`` is the old head. The newest handler runs first and reaches
its predecessor through ``ctx.next_cb``.

Configurations are values. Every builder returns a new configuration and leaves
the receiver untouched, so a configuration can be shared between traversals
and extended in different directions::

    base = default_rewrite_config()
    cfg = base.with_symbol_handler(rename).add_call_handler(math.sqrt, inline_sqrt)
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Union

from exprflow.core.combinators import merge_bottomup
from exprflow.core.context import VisitContext
from exprflow.core.nodes import Node
from exprflow.enums import HandlerSlot, NodeKind, TraversalMode
from exprflow.errors import ConfigurationError

Handler = Callable[[Node, VisitContext], Any]
SlotLike = Union[HandlerSlot, NodeKind, str]


@dataclass(frozen=True)
class HandlerLink:
  """One installed handler and the chain it wraps."""

  run: Handler
  previous: Optional["HandlerLink"] = None

  def __iter__(self) -> Iterator[Handler]:
    """Yields handlers newest first."""
    link: Optional[HandlerLink] = self
    while link is not None:
      yield link.run
      link = link.previous

  def __len__(self) -> int:
    return sum(1 for _ in self)


@dataclass(frozen=True)
class TargetChain:
  """Handlers registered for one call target."""

  identity: Any
  link: HandlerLink


# --- Default handlers ---


def identity_rewrite_handler(node: Node, ctx: VisitContext) -> Node:
  """Rewrite default: the node as the engine rebuilt it."""
  return node


def empty_analysis_handler(node: Node, ctx: VisitContext) -> Dict[str, Any]:
  """Analysis default for leaves: contributes nothing."""
  return {}


def merge_analysis_handler(node: Node, ctx: VisitContext) -> Dict[str, Any]:
  """Analysis default for composites: passes the merged child results upwards."""
  return merge_bottomup(ctx.bottomup or [])


def passthrough_topdown_handler(node: Node, ctx: VisitContext) -> Any:
  """Topdown default: children inherit the parent's topdown information."""
  return ctx.topdown


def _as_slot(kind: SlotLike) -> HandlerSlot:
  if isinstance(kind, HandlerSlot):
    return kind
  if isinstance(kind, NodeKind):
    return HandlerSlot.for_kind(kind)
  try:
    return HandlerSlot(kind)
  except ValueError:
    known = [s.value for s in HandlerSlot]
    raise ConfigurationError(f"Unknown handler slot: '{kind}'. Known slots: {known}") from None


@dataclass(frozen=True, eq=False)
class CallbackConfig:
  """
  Immutable mapping from handler slots to handler chains.

  Attributes:
      mode: The traversal mode this configuration was built for.
      handlers: Generic chain per slot.
      call_targets: Chains for calls to specific targets, keyed by ``id(target)``.
      topdown_targets: Topdown chains for calls to specific targets.
  """

  mode: TraversalMode
  handlers: Mapping[HandlerSlot, HandlerLink]
  call_targets: Mapping[int, TargetChain] = field(default_factory=lambda: MappingProxyType({}))
  topdown_targets: Mapping[int, TargetChain] = field(default_factory=lambda: MappingProxyType({}))

  # --- Resolution ---

  def handler_chain(self, kind: SlotLike) -> HandlerLink:
    """The generic chain for a slot."""
    return self.handlers[_as_slot(kind)]

  def _targets(self, slot: HandlerSlot) -> Mapping[int, TargetChain]:
    if slot is HandlerSlot.CALL:
      return self.call_targets
    if slot is HandlerSlot.TOPDOWN:
      return self.topdown_targets
    raise ConfigurationError(f"Target-specific handlers exist only for call and topdown slots, not '{slot.value}'")

  def target_chain(self, kind: SlotLike, identity: Any) -> Optional[HandlerLink]:
    """The chain registered for ``identity`` in a call or topdown slot, if any."""
    entry = self._targets(_as_slot(kind)).get(id(identity))
    return entry.link if entry is not None else None

  def has_targets(self, kind: Optional[SlotLike] = None) -> bool:
    """True if any target-specific handler is registered (optionally for one slot)."""
    if kind is None:
      return bool(self.call_targets) or bool(self.topdown_targets)
    return bool(self._targets(_as_slot(kind)))

  # --- Builders ---

  def with_handler(self, kind: SlotLike, handler: Handler) -> "CallbackConfig":
    """
    Installs ``handler`` as the newest handler of a slot.

    Args:
        kind: A HandlerSlot, NodeKind or slot name ("atomic", ..., "topdown").
        handler: Callable ``(node, ctx) -> result``.

    Returns:
        CallbackConfig: A new configuration. ``self`` is unchanged.
    """
    slot = _as_slot(kind)
    handlers = dict(self.handlers)
    handlers[slot] = HandlerLink(handler, handlers.get(slot))
    return replace(self, handlers=MappingProxyType(handlers))

  def with_atomic_handler(self, handler: Handler) -> "CallbackConfig":
    return self.with_handler(HandlerSlot.ATOMIC, handler)

  def with_symbol_handler(self, handler: Handler) -> "CallbackConfig":
    return self.with_handler(HandlerSlot.SYMBOL, handler)

  def with_primitive_handler(self, handler: Handler) -> "CallbackConfig":
    return self.with_handler(HandlerSlot.PRIMITIVE, handler)

  def with_pairlist_handler(self, handler: Handler) -> "CallbackConfig":
    return self.with_handler(HandlerSlot.PAIRLIST, handler)

  def with_call_handler(self, handler: Handler) -> "CallbackConfig":
    return self.with_handler(HandlerSlot.CALL, handler)

  def with_topdown_handler(self, handler: Handler) -> "CallbackConfig":
    return self.with_handler(HandlerSlot.TOPDOWN, handler)

  def _add_target(self, slot: HandlerSlot, identity: Any, handler: Handler) -> "CallbackConfig":
    targets = dict(self._targets(slot))
    entry = targets.get(id(identity))
    previous = entry.link if entry is not None else None
    targets[id(identity)] = TargetChain(identity, HandlerLink(handler, previous))
    frozen = MappingProxyType(targets)
    if slot is HandlerSlot.CALL:
      return replace(self, call_targets=frozen)
    return replace(self, topdown_targets=frozen)

  def add_call_handler(self, identity: Any, handler: Handler) -> "CallbackConfig":
    """
    Installs a call handler that only fires for calls to ``identity``.

    The target is matched by identity after resolving the callee in the
    function's environment. Dispatch is suppressed where the callee name may be
    bound locally. The oldest target handler's ``next_cb`` falls through to the
    generic call chain.
    """
    return self._add_target(HandlerSlot.CALL, identity, handler)

  def add_topdown_handler(self, identity: Any, handler: Handler) -> "CallbackConfig":
    """Topdown counterpart of ``add_call_handler``."""
    return self._add_target(HandlerSlot.TOPDOWN, identity, handler)


_DEFAULT_HANDLERS = {
  TraversalMode.REWRITE: {
    HandlerSlot.ATOMIC: identity_rewrite_handler,
    HandlerSlot.SYMBOL: identity_rewrite_handler,
    HandlerSlot.PRIMITIVE: identity_rewrite_handler,
    HandlerSlot.PAIRLIST: identity_rewrite_handler,
    HandlerSlot.CALL: identity_rewrite_handler,
    HandlerSlot.TOPDOWN: passthrough_topdown_handler,
  },
  TraversalMode.ANALYSE: {
    HandlerSlot.ATOMIC: empty_analysis_handler,
    HandlerSlot.SYMBOL: empty_analysis_handler,
    HandlerSlot.PRIMITIVE: empty_analysis_handler,
    HandlerSlot.PAIRLIST: merge_analysis_handler,
    HandlerSlot.CALL: merge_analysis_handler,
    HandlerSlot.TOPDOWN: passthrough_topdown_handler,
  },
}


def default_config(mode: Union[TraversalMode, str]) -> CallbackConfig:
  """
  The built-in configuration for a traversal mode.

  Rewrite handlers return their input, so a default rewrite reproduces the
  tree. Analysis leaves contribute ``{}`` and composites merge their children.
  """
  mode = TraversalMode(mode)
  handlers = {slot: HandlerLink(run) for slot, run in _DEFAULT_HANDLERS[mode].items()}
  return CallbackConfig(mode=mode, handlers=MappingProxyType(handlers))


def default_analysis_config() -> CallbackConfig:
  return default_config(TraversalMode.ANALYSE)


def default_rewrite_config() -> CallbackConfig:
  return default_config(TraversalMode.REWRITE)


# --- Functional aliases ---


def with_handler(config: CallbackConfig, kind: SlotLike, handler: Handler) -> CallbackConfig:
  return config.with_handler(kind, handler)


def with_atomic_handler(config: CallbackConfig, handler: Handler) -> CallbackConfig:
  return config.with_atomic_handler(handler)


def with_symbol_handler(config: CallbackConfig, handler: Handler) -> CallbackConfig:
  return config.with_symbol_handler(handler)


def with_primitive_handler(config: CallbackConfig, handler: Handler) -> CallbackConfig:
  return config.with_primitive_handler(handler)


def with_pairlist_handler(config: CallbackConfig, handler: Handler) -> CallbackConfig:
  return config.with_pairlist_handler(handler)


def with_call_handler(config: CallbackConfig, handler: Handler) -> CallbackConfig:
  return config.with_call_handler(handler)


def with_topdown_handler(config: CallbackConfig, handler: Handler) -> CallbackConfig:
  return config.with_topdown_handler(handler)


def add_call_handler(config: CallbackConfig, identity: Any, handler: Handler) -> CallbackConfig:
  return config.add_call_handler(identity, handler)


def add_topdown_handler(config: CallbackConfig, identity: Any, handler: Handler) -> CallbackConfig:
  return config.add_topdown_handler(identity, handler)
