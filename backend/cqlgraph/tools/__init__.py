"""
CLI tools for cqlgraph administration.

This module provides command-line tools for:
- schema: Print, create or drop the graph tables

Invariants:
    - Connection settings come from the environment only
"""

from .schema_cli import SchemaCLI, main, setup_logging

__all__ = ["SchemaCLI", "main", "setup_logging"]
