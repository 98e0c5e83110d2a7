"""
Unit tests for the query planner.

Tests cover:
- Base select, limit scaling and ordering
- Id fan-out for single and composite identities
- Conditions appended to every id select
- Offset ignored with a warning
- Failures producing no statements
"""

import logging

import pytest

from backend.cqlgraph.cql import MAX_LIMIT
from backend.cqlgraph.errors import UnsupportedPredicateError
from backend.cqlgraph.query import (
    NO_LIMIT,
    Or,
    Order,
    Query,
    QueryPlanner,
    Relation,
    RelationType,
    Value,
)
from backend.cqlgraph.types import Column, EntityKind, Id


def label_is(label):
    return Relation(Column.LABEL, RelationType.EQ, Value.scalar(label))


class TestQueryPlanner:
    """Tests for QueryPlanner."""

    @pytest.fixture
    def vertices(self):
        return QueryPlanner("vertices")

    def test_no_ids_no_conditions(self, vertices):
        selects = vertices.plan(Query(EntityKind.VERTEX))
        assert [str(s) for s in selects] == ["SELECT * FROM vertices"]

    def test_single_id_column_uses_in(self, vertices):
        """Arity 1 ids collapse into one IN select, in the given order."""
        selects = vertices.plan(Query(EntityKind.VERTEX, ids=(Id("v2"), Id("v1"))))
        assert len(selects) == 1
        assert str(selects[0]) == "SELECT * FROM vertices WHERE id IN ('v2', 'v1')"
        assert selects[0].to_cql() == (
            "SELECT * FROM vertices WHERE id IN %s",
            (("v2", "v1"),),
        )

    def test_composite_id_fans_out(self):
        """Arity 2 ids produce one select per id with one equality per column."""
        planner = QueryPlanner("secondary_indexes")
        query = Query(
            EntityKind.SECONDARY_INDEX,
            ids=(Id.from_parts("by_name", "marko"), Id.from_parts("by_name", "josh")),
        )

        selects = planner.plan(query)

        assert [str(s) for s in selects] == [
            "SELECT * FROM secondary_indexes WHERE index_label_name = 'by_name' "
            "AND field_values = 'marko'",
            "SELECT * FROM secondary_indexes WHERE index_label_name = 'by_name' "
            "AND field_values = 'josh'",
        ]

    def test_edge_ids_use_every_identity_column(self):
        planner = QueryPlanner("edges")
        edge_id = Id.from_parts("v1", "OUT", "knows", "", "v2")

        (select,) = planner.plan(Query(EntityKind.EDGE, ids=(edge_id,)))

        assert [c.column for c in select.clauses] == [
            "source_vertex",
            "direction",
            "label",
            "sort_values",
            "target_vertex",
        ]
        assert [c.value for c in select.clauses] == ["v1", "OUT", "knows", "", "v2"]

    def test_wrong_id_arity_raises(self):
        planner = QueryPlanner("secondary_indexes")
        with pytest.raises(ValueError, match="expected 2"):
            planner.plan(Query(EntityKind.SECONDARY_INDEX, ids=(Id("no-separator"),)))

    def test_limit_scaled_by_fan_out(self, vertices):
        (select,) = vertices.plan(Query(EntityKind.VERTEX, limit=5))
        assert select.limit == 500
        assert str(select) == "SELECT * FROM vertices LIMIT 500"

    def test_custom_fan_out_factor(self):
        planner = QueryPlanner("vertices", fan_out_factor=3)
        (select,) = planner.plan(Query(EntityKind.VERTEX, limit=5))
        assert select.limit == 15

    def test_no_limit_adds_no_limit_clause(self, vertices):
        (select,) = vertices.plan(Query(EntityKind.VERTEX, limit=NO_LIMIT))
        assert select.limit is None

    def test_scaled_limit_capped_at_cql_maximum(self, vertices):
        (select,) = vertices.plan(Query(EntityKind.VERTEX, limit=30_000_000))
        assert select.limit == MAX_LIMIT == 2**31 - 1

    def test_zero_limit_plans_no_select(self, vertices):
        assert vertices.plan(Query(EntityKind.VERTEX, ids=(Id("v1"),), limit=0)) == []

    def test_zero_limit_still_translates_conditions(self, vertices):
        query = Query(
            EntityKind.VERTEX,
            conditions=(Or(label_is("a"), label_is("b")),),
            limit=0,
        )
        with pytest.raises(UnsupportedPredicateError):
            vertices.plan(query)

    def test_invalid_fan_out_factor(self):
        with pytest.raises(ValueError):
            QueryPlanner("vertices", fan_out_factor=0)

    def test_offset_is_ignored_with_warning(self, vertices, caplog):
        """A non-zero offset plans the same selects and logs a warning."""
        with caplog.at_level(logging.WARNING, logger="backend.cqlgraph.query.planner"):
            with_offset = vertices.plan(Query(EntityKind.VERTEX, limit=2, offset=10))

        without_offset = vertices.plan(Query(EntityKind.VERTEX, limit=2))

        assert with_offset == without_offset
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].offset == 10

    def test_orders_keep_insertion_order(self, vertices):
        query = Query(
            EntityKind.VERTEX,
            orders={Column.PROPERTY_KEY: Order.DESC, Column.PROPERTY_VALUE: Order.ASC},
        )
        (select,) = vertices.plan(query)
        assert str(select) == (
            "SELECT * FROM vertices ORDER BY property_key DESC, property_value ASC"
        )
        assert select.paged

    def test_orders_with_id_in_are_unpaged(self, vertices):
        query = Query(
            EntityKind.VERTEX,
            ids=(Id("v1"), Id("v2")),
            orders={Column.PROPERTY_KEY: Order.DESC},
        )
        (select,) = vertices.plan(query)
        assert str(select) == (
            "SELECT * FROM vertices WHERE id IN ('v1', 'v2') ORDER BY property_key DESC"
        )
        assert not select.paged

    def test_ids_without_orders_stay_paged(self, vertices):
        (select,) = vertices.plan(Query(EntityKind.VERTEX, ids=(Id("v1"), Id("v2"))))
        assert select.paged

    def test_conditions_without_ids(self, vertices):
        (select,) = vertices.plan(Query(EntityKind.VERTEX, conditions=(label_is("person"),)))
        assert str(select) == "SELECT * FROM vertices WHERE label = 'person'"

    def test_conditions_applied_to_every_id_select(self):
        """Two composite ids and one condition give two selects, each restricted."""
        planner = QueryPlanner("secondary_indexes")
        condition = Relation(Column.ELEMENT_IDS, RelationType.GT, Value.scalar("v1"))
        query = Query(
            EntityKind.SECONDARY_INDEX,
            ids=(Id.from_parts("idx", "a"), Id.from_parts("idx", "b")),
            conditions=(condition,),
        )

        selects = planner.plan(query)

        assert len(selects) == 2
        for select, value in zip(selects, ["a", "b"]):
            assert [str(c) for c in select.clauses] == [
                "index_label_name = 'idx'",
                f"field_values = '{value}'",
                "element_ids > 'v1'",
            ]

    def test_unsupported_condition_plans_nothing(self, vertices):
        query = Query(
            EntityKind.VERTEX,
            ids=(Id("v1"),),
            conditions=(Or(label_is("person"), label_is("software")),),
        )
        with pytest.raises(UnsupportedPredicateError):
            vertices.plan(query)

    def test_neq_plans_nothing(self, vertices):
        query = Query(
            EntityKind.VERTEX,
            conditions=(Relation(Column.LABEL, RelationType.NEQ, Value.scalar("x")),),
        )
        with pytest.raises(UnsupportedPredicateError):
            vertices.plan(query)


class TestQuery:
    """Tests for Query validation."""

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError, match="limit"):
            Query(EntityKind.VERTEX, limit=-1)

    def test_negative_offset_rejected(self):
        with pytest.raises(ValueError, match="offset"):
            Query(EntityKind.VERTEX, offset=-1)

    def test_defaults(self):
        query = Query(EntityKind.EDGE)
        assert query.ids == ()
        assert query.conditions == ()
        assert dict(query.orders) == {}
        assert query.limit == NO_LIMIT
        assert query.offset == 0

    def test_orders_are_read_only(self):
        query = Query(EntityKind.VERTEX, orders={Column.ID: Order.ASC})
        with pytest.raises(TypeError):
            query.orders[Column.LABEL] = Order.DESC
