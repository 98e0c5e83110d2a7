"""
Translation of condition trees into CQL clauses.

Only conjunctions of simple comparisons can be expressed: CQL has no OR
and no inequality operator.

Invariants:
    - Relation keys are used as literal column names
    - Value serialization is chosen by the Value tag, never by the payload type
    - OR and NEQ fail before any statement is built
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from ..cql import Clause, Conjunction, and_, eq, gt, gte, lt, lte
from ..errors import UnsupportedPredicateError
from .types import And, Condition, Or, Relation, RelationType, Value, ValueKind

_COMPARATORS: dict[RelationType, Callable[[str, Any], Clause]] = {
    RelationType.EQ: eq,
    RelationType.GT: gt,
    RelationType.GTE: gte,
    RelationType.LT: lt,
    RelationType.LTE: lte,
}

_SERIALIZERS: dict[ValueKind, Callable[[Any], Any]] = {
    ValueKind.SCALAR: lambda raw: raw,
    ValueKind.IDENTIFIER: lambda raw: raw.as_string(),
    ValueKind.SYMBOL: lambda raw: raw.name,
}


def serialize_value(value: Value) -> Any:
    """Serialize a tagged value to what the store compares against."""
    return _SERIALIZERS[value.kind](value.raw)


class ConditionTranslator:
    """Converts Condition trees to CQL clauses.

    Example:
        >>> translator = ConditionTranslator()
        >>> clause = translator.translate(
        ...     And(Relation(Column.LABEL, RelationType.EQ, Value.scalar("person")),
        ...         Relation(Column.NAME, RelationType.GT, Value.scalar("m")))
        ... )
        >>> str(clause)
        "label = 'person' AND name > 'm'"
    """

    def translate(self, condition: Condition) -> Clause:
        """Translate one condition.

        Raises:
            UnsupportedPredicateError: For OR, NEQ or unknown conditions
        """
        if isinstance(condition, Relation):
            return self._relation(condition)
        if isinstance(condition, And):
            return and_(self.translate(condition.left), self.translate(condition.right))
        if isinstance(condition, Or):
            raise UnsupportedPredicateError(
                f"OR conditions are not supported: {condition}", condition
            )
        raise UnsupportedPredicateError(f"Not supported condition: {condition!r}", condition)

    def translate_all(self, conditions: Iterable[Condition]) -> Conjunction:
        """Translate top-level conditions into a single conjunction."""
        return and_(*(self.translate(c) for c in conditions))

    def _relation(self, relation: Relation) -> Clause:
        comparator = _COMPARATORS.get(relation.relation)
        if comparator is None:
            raise UnsupportedPredicateError(
                f"Not supported relation: {relation}", relation
            )
        return comparator(relation.key.value, serialize_value(relation.value))
