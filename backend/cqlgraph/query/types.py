"""
Backend-agnostic query model.

This module defines the objects a caller builds to describe a read:
- Value: Tagged condition value (scalar, identifier or symbol)
- Relation / And / Or: Condition tree
- Query: ids + conditions + ordering + limit

Invariants:
    - All objects are immutable; the planner never mutates them
    - Conditions at the top level of a Query are conjunctive
    - offset is advisory; the store cannot skip rows
    - limit counts logical records; the planner scales it to physical rows

Example:
    >>> q = Query(
    ...     result_type=EntityKind.VERTEX,
    ...     ids=(Id("v1"), Id("v2")),
    ...     conditions=(Relation(Column.LABEL, RelationType.EQ, Value.scalar("person")),),
    ...     limit=10,
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

from ..types import Column, EntityKind, Id

NO_LIMIT = 2**63 - 1


class Order(Enum):
    """Sort direction of an ORDER BY column."""

    ASC = "asc"
    DESC = "desc"


class RelationType(Enum):
    """Comparison operator of a Relation."""

    EQ = "="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    NEQ = "!="


class ValueKind(Enum):
    """Tag of a condition Value."""

    SCALAR = "scalar"
    IDENTIFIER = "identifier"
    SYMBOL = "symbol"


@dataclass(frozen=True)
class Value:
    """Tagged condition value.

    Callers pick the variant explicitly so serialization never depends on
    inspecting the runtime type of the payload.
    """

    kind: ValueKind
    raw: Any

    @classmethod
    def scalar(cls, raw: Any) -> Value:
        return cls(ValueKind.SCALAR, raw)

    @classmethod
    def identifier(cls, raw: Id) -> Value:
        return cls(ValueKind.IDENTIFIER, raw)

    @classmethod
    def symbol(cls, raw: Enum) -> Value:
        return cls(ValueKind.SYMBOL, raw)


@dataclass(frozen=True)
class Relation:
    """Comparison of one column against a value."""

    key: Column
    relation: RelationType
    value: Value

    def __str__(self) -> str:
        return f"{self.key.value} {self.relation.value} {self.value.raw!r}"


@dataclass(frozen=True)
class And:
    left: Condition
    right: Condition

    def __str__(self) -> str:
        return f"({self.left} AND {self.right})"


@dataclass(frozen=True)
class Or:
    left: Condition
    right: Condition

    def __str__(self) -> str:
        return f"({self.left} OR {self.right})"


Condition = Union[Relation, And, Or]


@dataclass(frozen=True)
class Query:
    """Abstract query against one entity kind.

    Attributes:
        result_type: Kind of entries the query returns
        ids: Requested identifiers (empty means all)
        conditions: Conjunctive conditions
        orders: Column -> Order, applied in insertion order
        limit: Maximum logical records, or NO_LIMIT
        offset: Requested offset (ignored by the store)
    """

    result_type: EntityKind
    ids: tuple[Id, ...] = ()
    conditions: tuple[Condition, ...] = ()
    orders: Mapping[Column, Order] = field(default_factory=dict)
    limit: int = NO_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError(f"Query limit must be >= 0, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"Query offset must be >= 0, got {self.offset}")
        object.__setattr__(self, "ids", tuple(self.ids))
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "orders", MappingProxyType(dict(self.orders)))

    def __str__(self) -> str:
        parts = [f"type={self.result_type.value}"]
        if self.ids:
            parts.append(f"ids={[str(i) for i in self.ids]}")
        if self.conditions:
            parts.append(f"conditions={[str(c) for c in self.conditions]}")
        if self.orders:
            parts.append(f"orders={ {k.value: v.name for k, v in self.orders.items()} }")
        if self.limit != NO_LIMIT:
            parts.append(f"limit={self.limit}")
        if self.offset:
            parts.append(f"offset={self.offset}")
        return f"Query({', '.join(parts)})"
