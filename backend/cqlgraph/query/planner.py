"""
Query planner: abstract Query -> CQL selects.

CQL can only look rows up efficiently by partition key, cannot IN across
a composite key that includes the partition column, has no OR and no
OFFSET. The planner hides these restrictions:

    1. SELECT * FROM <table>
    2. LIMIT scaled by the fan-out factor (one record spans many rows),
       capped at the largest LIMIT CQL accepts; limit 0 plans no select
    3. offset ignored with a warning
    4. ORDER BY in the query's insertion order
    5. ids: single id column -> one IN select; composite id -> one select per id
    6. conditions conjoined onto every id select

Invariants:
    - Conditions are translated before any select is derived
    - Selects come back in the order the ids were given
    - No deduplication across selects
    - ORDER BY combined with an id IN is planned unpaged
"""

from __future__ import annotations

import logging
from typing import Mapping

from ..config import DEFAULT_FAN_OUT_FACTOR
from ..cql import MAX_LIMIT, Select, eq, in_
from ..entry.layout import COLUMN_LAYOUTS, ColumnLayout, layout_for
from ..types import EntityKind
from .conditions import ConditionTranslator
from .types import NO_LIMIT, Order, Query

logger = logging.getLogger(__name__)


class QueryPlanner:
    """Plans the selects answering a Query against one table.

    Attributes:
        table: Physical table to select from
        layouts: Entity kind -> column layout (for id columns)
        fan_out_factor: Physical rows assumed per logical record

    Example:
        >>> planner = QueryPlanner("vertices")
        >>> [str(s) for s in planner.plan(Query(EntityKind.VERTEX, ids=(Id("a"), Id("b"))))]
        ["SELECT * FROM vertices WHERE id IN ('a', 'b')"]
    """

    def __init__(
        self,
        table: str,
        layouts: Mapping[EntityKind, ColumnLayout] = COLUMN_LAYOUTS,
        fan_out_factor: int = DEFAULT_FAN_OUT_FACTOR,
        translator: ConditionTranslator | None = None,
    ) -> None:
        if fan_out_factor < 1:
            raise ValueError(f"fan_out_factor must be >= 1, got {fan_out_factor}")
        self.table = table
        self.layouts = layouts
        self.fan_out_factor = fan_out_factor
        self.translator = translator or ConditionTranslator()

    def plan(self, query: Query) -> list[Select]:
        """Build the selects for a query.

        Raises:
            UnsupportedPredicateError: If a condition uses OR or NEQ
            ValueError: If an id does not match the kind's id columns
        """
        condition = (
            self.translator.translate_all(query.conditions) if query.conditions else None
        )

        if query.limit == 0:
            logger.debug("query with limit 0 on %s needs no select", self.table)
            return []

        select = Select(self.table)

        if query.limit != NO_LIMIT:
            # TODO: derive the factor from label statistics instead of a constant
            select = select.with_limit(min(query.limit * self.fan_out_factor, MAX_LIMIT))

        if query.offset != 0:
            logger.warning(
                "Query offset is not supported by the Cassandra store, it will be ignored",
                extra={"offset": query.offset, "table": self.table},
            )

        for column, order in query.orders.items():
            select = select.order_by(column.value, descending=order is Order.DESC)

        selects = self._by_ids(query, select)
        selects = [s.unpaged() if s.orders_across_partitions else s for s in selects]

        if condition is None:
            logger.debug("query only by id(s): %s", [str(s) for s in selects])
            return selects

        selects = [s.where(condition) for s in selects]
        logger.debug("query by conditions: %s", [str(s) for s in selects])
        return selects

    def _by_ids(self, query: Query, select: Select) -> list[Select]:
        if not query.ids:
            return [select]

        layout = layout_for(query.result_type, self.layouts)
        names = [col.value for col in layout.id_columns]
        ids = [i.split(layout.arity) for i in query.ids]

        # partition key only
        if layout.arity == 1:
            return [select.where(in_(names[0], [values[0] for values in ids]))]

        # partition key + clustering keys: CQL rejects a multi-column IN that
        # includes the partition key, so issue one select per id
        selections = []
        for values in ids:
            selection = select
            for name, value in zip(names, values):
                selection = selection.where(eq(name, value))
            selections.append(selection)
        return selections
