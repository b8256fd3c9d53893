"""
Runtime Configuration Store.

Holds the warning flags consulted by the traversal engine, the heuristics used
by the Scope Analyzer, and the loader that reads both from ``pyproject.toml``.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib


class WarningFlags(BaseModel):
  """
  The set of warning-class diagnostics a traversal may emit.
  """

  model_config = ConfigDict(frozen=True, extra="forbid")

  warn_unknown_callee: bool = Field(True, description="Warn when a call target cannot be resolved.")
  warn_possible_local_shadow: bool = Field(
    True,
    description="Warn when target-specific dispatch is suppressed by a possible local binding.",
  )

  def enabled(self, flag: str) -> bool:
    """
    Answers "is warning ``flag`` enabled?".

    Raises:
        ValueError: If ``flag`` is not a recognised option.
    """
    if flag not in type(self).model_fields:
      raise ValueError(f"Unknown warning flag: '{flag}'. Known flags: {sorted(type(self).model_fields)}")
    return bool(getattr(self, flag))

  def with_flag(self, flag: str, value: bool) -> "WarningFlags":
    """Returns a copy with ``flag`` set to ``value``."""
    self.enabled(flag)
    return self.model_copy(update={flag: value})


class ScopePolicy(BaseModel):
  """
  Heuristics for the conservative scope pre-pass.

  The defaults describe R-style trees, which the Python reader also produces:
  ``<-``/``=`` assign, ``function(params, body)`` opens a scope, and the
  listed callees evaluate their arguments non-standardly.
  """

  model_config = ConfigDict(frozen=True, extra="forbid")

  assignment_forms: Tuple[str, ...] = ("<-", "=")
  function_form: str = "function"
  loop_forms: Tuple[str, ...] = ("for",)
  nse_functions: Tuple[str, ...] = (
    "quote",
    "bquote",
    "substitute",
    "expression",
    "local",
    "with",
    "within",
    "eval",
    "evalq",
    "~",
  )
  count_replacement_targets: bool = Field(
    True,
    description="Count `x` as assigned for `x[i] <- v` and `f(x) <- v`.",
  )


class EngineSettings(BaseModel):
  """
  Configuration container combining warning flags and scope policy.
  """

  warnings: WarningFlags = Field(default_factory=WarningFlags)
  scope: ScopePolicy = Field(default_factory=ScopePolicy)

  @classmethod
  def load(
    cls,
    search_path: Optional[Path] = None,
    warning_overrides: Optional[Dict[str, Any]] = None,
  ) -> "EngineSettings":
    """
    Loads settings from ``[tool.exprflow]`` in the nearest pyproject.toml.

    Args:
        search_path: Directory to start searching from (default: cwd).
        warning_overrides: Flag values that take precedence over the file.

    Returns:
        EngineSettings: The resolved settings.
    """
    toml_config = _load_toml_settings(search_path or Path.cwd())

    flags = {**toml_config.get("warnings", {}), **(warning_overrides or {})}
    scope = toml_config.get("scope", {})
    return cls(warnings=WarningFlags(**flags), scope=ScopePolicy(**scope))


def _load_toml_settings(start_path: Path) -> Dict[str, Any]:
  """
  Searches ``start_path`` and its parents for pyproject.toml.

  Returns:
      Dict: The ``[tool.exprflow]`` table, or an empty dict.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}
      return data.get("tool", {}).get("exprflow", {})

  return {}


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Types are inferred (bool, int, float, or string).

  Raises:
      ValueError: If an item has no '='.
  """
  if not items:
    return {}

  config: Dict[str, Any] = {}
  for item in items:
    if "=" not in item:
      raise ValueError(f"Invalid config format: '{item}'. Expected 'key=value'.")

    key, val_str = item.split("=", 1)
    key = key.strip()
    val_str = val_str.strip()

    final_val: Any = val_str
    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    else:
      try:
        if "." in val_str or "e" in val_str.lower():
          final_val = float(val_str)
        else:
          final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config
