"""
Central Logging and Console Utilities.

This module routes the application's output through the Python standard
`logging` library, rendered by `rich`.

1.  **Standard Logging Integration**: A `RichHandler` on the root logger plus
    helper functions (`log_info`, `log_success`, `log_warning`, `log_error`).
2.  **Swappable Console**: A proxy around the Rich Console. The output
    destination (stdout, a file, an in-memory buffer) can be replaced at runtime
    via `set_console`, which tests use to capture CLI output.

Attributes:
    console (_ConsoleProxy): A stable, module-level reference to the active console.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Custom level between INFO and WARNING
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "symbol": "bold magenta",
    "scope": "bold blue",
  }
)


class _ConsoleProxy:
  """
  A proxy around `rich.console.Console`.

  Printing is forwarded to a backend console that can be swapped without
  invalidating references to the module-level `console`. Swapping the backend
  also re-points the logging handler.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=THEME)
    self._configure_logging()

  def set_backend(self, new_console: Console) -> None:
    """
    Injects a new Console backend and updates logging handlers.

    Args:
        new_console (Console): The new Rich Console instance to use.
    """
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    """Resets the proxy to a fresh standard output console."""
    self._backend = Console(theme=THEME)
    self._configure_logging()

  @property
  def backend(self) -> Console:
    return self._backend

  def _configure_logging(self) -> None:
    # Drop earlier RichHandlers so output goes to exactly one destination
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
    root_logger.addHandler(rich_handler)

  def print(self, *args: Any, **kwargs: Any) -> None:
    """Forwards `print` calls to the active backend."""
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Replaces the console used by `console` and by the logging handler.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Resets logging and console to standard output."""
  console.reset()


def get_console() -> Console:
  """Returns the active Rich Console backend."""
  return console.backend


def set_verbosity(level: int) -> None:
  """Sets the root logger level (e.g. ``logging.DEBUG`` for traversal traces)."""
  logging.getLogger().setLevel(level)


def log_info(msg: str) -> None:
  """
  Logs an informational message via standard logging.

  Args:
      msg (str): The message content. Can include rich markup like [bold].
  """
  logging.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  """Logs a success message at the SUCCESS level."""
  logging.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  """Logs a warning message via standard logging."""
  logging.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  """Logs an error message via standard logging."""
  logging.error(f"❌ {msg}", extra={"markup": True})
