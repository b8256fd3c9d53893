"""
Result Combinators.

Helpers used inside handlers: ``merge_bottomup`` folds the child results of an
analysis into one mapping, and ``collect_from_args`` gathers metadata that
earlier rewrite handlers left on a call's arguments.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from exprflow.core.nodes import Call, Node


def _as_items(value: Any) -> List[Any]:
  # Lists and tuples are spliced one level; anything else is a single item.
  if isinstance(value, (list, tuple)):
    return list(value)
  return [value]


def merge_bottomup(bottomup: Iterable[Optional[Mapping[str, Any]]]) -> Dict[str, List[Any]]:
  """
  Merges a sequence of analysis results into a single result.

  Each name's list in the output is the left-to-right concatenation of that
  name's values across the input. Entries without a usable name (``None`` or
  ``""``) are discarded, as are missing results.

  Example::

      merge_bottomup([{"a": [1]}, {"a": [2], "b": [3]}])
      # {"a": [1, 2], "b": [3]}

  Args:
      bottomup: Ordered child results, as handed to a composite handler.

  Returns:
      Dict[str, List]: The merged mapping. Key order follows first appearance.
  """
  merged: Dict[str, List[Any]] = {}
  for result in bottomup:
    if not result:
      continue
    for name, value in result.items():
      if name is None or name == "":
        continue
      merged.setdefault(name, []).extend(_as_items(value))
  return merged


def collect_from_args(
  expr: Call,
  key: str,
  predicate: Callable[[Node], bool] = lambda node: True,
  include_callee: bool = False,
) -> List[Any]:
  """
  Concatenates metadata ``key`` from the arguments of a call.

  Args:
      expr: The call whose arguments are scanned.
      key: Metadata key to collect.
      predicate: Only arguments for which this returns True contribute.
      include_callee: Also consider the callee position (first).

  Returns:
      List: The collected values. Arguments without the key contribute nothing.
  """
  candidates = expr.children() if include_callee else expr.args
  collected: List[Any] = []
  for arg in candidates:
    if not predicate(arg):
      continue
    value = arg.metadata_get(key)
    if value is None:
      continue
    collected.extend(_as_items(value))
  return collected
