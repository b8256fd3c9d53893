"""
Static Analysis Package.

Modules:
    - ``scope``: Conservative pre-pass computing assigned and bound names per
      function scope.
"""
