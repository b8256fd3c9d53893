"""
Command-line interface for exprflow.
"""
