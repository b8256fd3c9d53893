"""
Enumerations for exprflow.

This module defines the closed sets used by the traversal machinery: the five
expression shapes, the handler slots a configuration can hold, and the two
traversal modes.
"""

from enum import Enum


class NodeKind(str, Enum):
  """
  The closed set of expression shapes.

  Only ``PAIRLIST`` and ``CALL`` are composite; every other kind is a leaf.
  """

  ATOMIC = "atomic"
  SYMBOL = "symbol"
  PRIMITIVE = "primitive"
  PAIRLIST = "pairlist"
  CALL = "call"

  @property
  def is_composite(self) -> bool:
    """True for kinds that own child expressions."""
    return self in (NodeKind.PAIRLIST, NodeKind.CALL)


class HandlerSlot(str, Enum):
  """
  Slots of a callback configuration: one per node kind plus the topdown slot.
  """

  ATOMIC = "atomic"
  SYMBOL = "symbol"
  PRIMITIVE = "primitive"
  PAIRLIST = "pairlist"
  CALL = "call"
  TOPDOWN = "topdown"

  @classmethod
  def for_kind(cls, kind: NodeKind) -> "HandlerSlot":
    """Returns the slot holding the handler for nodes of ``kind``."""
    return cls(kind.value)


class TraversalMode(str, Enum):
  """
  Determines handler return types and how child results are combined.
  """

  ANALYSE = "analyse"  # handlers return name -> list mappings
  REWRITE = "rewrite"  # handlers return replacement nodes
