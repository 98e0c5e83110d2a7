"""
CQL statement model for cqlgraph.

Statements are plain immutable values. They are produced by the query
planner and the entry codec, and consumed by a Session implementation
(the DataStax driver adapter renders them with to_cql(), the in-memory
session interprets them directly).
"""

from .statements import (
    MAX_LIMIT,
    Batch,
    Clause,
    Comparison,
    Conjunction,
    Delete,
    In,
    Insert,
    Select,
    Statement,
    and_,
    eq,
    gt,
    gte,
    in_,
    inline,
    literal,
    lt,
    lte,
)

__all__ = [
    # Clauses
    "Clause",
    "Comparison",
    "In",
    "Conjunction",
    "eq",
    "gt",
    "gte",
    "lt",
    "lte",
    "in_",
    "and_",
    # Statements
    "Statement",
    "Select",
    "Insert",
    "Delete",
    "Batch",
    "MAX_LIMIT",
    # Rendering
    "literal",
    "inline",
]
