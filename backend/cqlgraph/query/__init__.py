"""
Query module for cqlgraph - abstract queries and their CQL plans.

This module handles:
- The backend-agnostic query model (Query, conditions, tagged values)
- Translation of conditions into CQL clauses
- Planning of the selects that answer a query

Invariants:
    - Only conjunctions of EQ/GT/GTE/LT/LTE are supported
    - Offsets are ignored; limits are scaled to physical rows
"""

from .conditions import ConditionTranslator, serialize_value
from .planner import QueryPlanner
from .types import (
    NO_LIMIT,
    And,
    Condition,
    Or,
    Order,
    Query,
    Relation,
    RelationType,
    Value,
    ValueKind,
)

__all__ = [
    # Model
    "NO_LIMIT",
    "Query",
    "Order",
    "Condition",
    "Relation",
    "RelationType",
    "And",
    "Or",
    "Value",
    "ValueKind",
    # Translation
    "ConditionTranslator",
    "serialize_value",
    "QueryPlanner",
]
