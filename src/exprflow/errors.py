"""
Exception and warning types raised by exprflow.

Fatal problems derive from ``ValueError``. Diagnostics that do not stop a
traversal are ``UserWarning`` subclasses, emitted only when the matching
warning flag is enabled.
"""

from typing import Any, Optional


class ConfigurationError(ValueError):
  """A callback configuration cannot be used as requested."""


class HandlerResultError(ConfigurationError):
  """
  A handler returned a value of the wrong shape for the active traversal mode.
  """

  def __init__(self, slot: str, kind: str, mode: str, value: Any):
    self.slot = slot
    self.kind = kind
    self.mode = mode
    self.value = value
    expected = "an expression node" if mode == "rewrite" else "a mapping of name -> list"
    super().__init__(
      f"The '{slot}' handler returned {type(value).__name__} for a {kind} node; "
      f"{mode} traversals require {expected}."
    )


class UnsupportedSyntaxError(ValueError):
  """The Python reader met a construct it cannot express as an expression tree."""

  def __init__(self, construct: str, detail: Optional[str] = None):
    self.construct = construct
    message = f"Unsupported syntax: {construct}"
    if detail:
      message = f"{message} ({detail})"
    super().__init__(message)


class TraversalWarning(UserWarning):
  """Base category for non-fatal traversal diagnostics."""


class UnknownCalleeWarning(TraversalWarning):
  """A call target could not be resolved in the function's environment."""


class PossibleLocalShadowWarning(TraversalWarning):
  """Target-specific dispatch was suppressed because the name may be bound locally."""
