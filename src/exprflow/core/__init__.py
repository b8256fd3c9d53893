"""
Core Package.

Contains the traversal machinery:
- Expression model (nodes and metadata)
- Callback configuration and handler chains
- Traversal engine and public entry points
"""
