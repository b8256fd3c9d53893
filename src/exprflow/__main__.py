"""
Entry point for module execution (``python -m exprflow``).

This module delegates execution to the CLI handler in ``exprflow.cli.__main__``.
"""

import sys
from exprflow.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
