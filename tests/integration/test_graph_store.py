"""
Integration tests for GraphStore and the graph tables over InMemorySession.

Tests cover:
- Table creation
- Insert / commit / query round trips for vertices, edges and schema objects
- The three delete granularities end to end
- Limit scaling at physical-row granularity, and limit 0
- Bounded concurrent queries
- Commit failure handling across tables
"""

import pytest

from backend.cqlgraph.config import BackendConfig, QueryConfig
from backend.cqlgraph.entry import EXIST, Property, Row
from backend.cqlgraph.errors import (
    BackendError,
    ExecutionError,
    PreconditionError,
    UnsupportedPredicateError,
)
from backend.cqlgraph.graph_store import GraphStore
from backend.cqlgraph.query import Or, Order, Query, Relation, RelationType, Value
from backend.cqlgraph.store import InMemorySession
from backend.cqlgraph.tables import ALL_TABLES, PropertyKeyTable, VertexTable
from backend.cqlgraph.types import Column, Direction, EntityKind, Id


def vertex(vid, label, **props):
    return Row(
        Id(vid),
        {Column.ID: vid, Column.LABEL: label},
        tuple(Property.of(k, v) for k, v in props.items()),
    )


def edge(source, label, target, **props):
    parts = (source, Direction.OUT.name, label, "", target)
    keys = dict(
        zip(
            (
                Column.SOURCE_VERTEX,
                Column.DIRECTION,
                Column.LABEL,
                Column.SORT_VALUES,
                Column.TARGET_VERTEX,
            ),
            parts,
        )
    )
    return Row(
        Id.from_parts(*parts),
        keys,
        tuple(Property.of(k, v) for k, v in props.items()),
    )


class TestGraphStore:
    """Integration tests for GraphStore."""

    @pytest.fixture
    def session(self):
        return InMemorySession()

    @pytest.fixture
    def store(self, session):
        store = GraphStore(session)
        store.init()
        return store

    @pytest.fixture
    def populated(self, store):
        store.insert(EntityKind.VERTEX, vertex("v1", "person", name="marko", age="29"))
        store.insert(EntityKind.VERTEX, vertex("v2", "person", name="vadas"))
        store.insert(EntityKind.VERTEX, vertex("v3", "software", name="lop", lang="java"))
        store.insert(EntityKind.EDGE, edge("v1", "knows", "v2", weight="0.5"))
        store.insert(EntityKind.EDGE, edge("v1", "created", "v3"))
        store.commit()
        return store

    def test_init_creates_every_table(self, store, session):
        for table in ("property_keys", "vertex_labels", "edge_labels", "index_labels",
                      "vertices", "edges", "secondary_indexes"):
            assert session.has_table(table)
        assert session.table("vertices").indexes == {"vertices_label_index": "label"}
        assert session.table("edges").indexes == {"edges_label_index": "label"}
        assert session.table("vertices").clustering_keys == ("property_key",)

    def test_vertex_round_trip(self, populated):
        """Inserted properties come back merged into one entry per vertex."""
        (entry,) = populated.query(Query(EntityKind.VERTEX, ids=(Id("v1"),)))

        assert entry.kind == EntityKind.VERTEX
        assert entry.keys == {Column.ID: "v1", Column.LABEL: "person"}
        assert entry.properties() == {"name": "marko", "age": "29"}

    def test_query_multiple_ids(self, populated):
        entries = populated.query(Query(EntityKind.VERTEX, ids=(Id("v3"), Id("v1"))))
        assert {e.keys[Column.ID] for e in entries} == {"v1", "v3"}
        assert all(len(e.cells) == 2 for e in entries)

    def test_query_by_condition(self, populated):
        query = Query(
            EntityKind.VERTEX,
            conditions=(Relation(Column.LABEL, RelationType.EQ, Value.scalar("person")),),
        )
        entries = populated.query(query)
        assert sorted(e.keys[Column.ID] for e in entries) == ["v1", "v2"]

    def test_query_with_order(self, populated):
        query = Query(
            EntityKind.VERTEX,
            ids=(Id("v1"),),
            orders={Column.PROPERTY_KEY: Order.DESC},
        )
        (entry,) = populated.query(query)
        assert [c.name for c in entry.cells] == ["name", "age"]

    def test_query_with_order_over_many_ids(self, populated):
        query = Query(
            EntityKind.VERTEX,
            ids=(Id("v1"), Id("v2")),
            orders={Column.PROPERTY_KEY: Order.DESC},
        )
        entries = populated.query(query)
        assert sorted(e.keys[Column.ID] for e in entries) == ["v1", "v2"]

    def test_zero_limit_executes_nothing(self, populated, session):
        executed = len(session.executed)
        assert populated.query(Query(EntityKind.VERTEX, limit=0)) == []
        assert len(session.executed) == executed

    def test_vertex_without_properties(self, store, session):
        store.insert(EntityKind.VERTEX, Row(Id("v9"), {Column.ID: "v9", Column.LABEL: "tag"}))
        store.commit()

        (entry,) = store.query(Query(EntityKind.VERTEX, ids=(Id("v9"),)))

        assert entry.cells == []
        assert entry.keys[Column.LABEL] == "tag"
        assert session.row_count("vertices") == 1

    def test_edge_round_trip(self, populated):
        edge_id = Id.from_parts("v1", "OUT", "knows", "", "v2")

        (entry,) = populated.query(Query(EntityKind.EDGE, ids=(edge_id,)))

        assert entry.keys[Column.TARGET_VERTEX] == "v2"
        assert entry.properties() == {"weight": "0.5"}

    def test_edges_by_direction_symbol(self, populated):
        query = Query(
            EntityKind.EDGE,
            conditions=(
                Relation(Column.SOURCE_VERTEX, RelationType.EQ, Value.identifier(Id("v1"))),
                Relation(Column.DIRECTION, RelationType.EQ, Value.symbol(Direction.OUT)),
            ),
        )
        entries = populated.query(query)
        assert sorted(e.keys[Column.LABEL] for e in entries) == ["created", "knows"]

    def test_schema_objects(self, store):
        row = Row(
            Id("age"),
            {Column.NAME: "age", Column.DATA_TYPE: "INT", Column.CARDINALITY: "SINGLE"},
        )
        store.insert(EntityKind.PROPERTY_KEY, row)
        store.commit()

        (entry,) = store.query(Query(EntityKind.PROPERTY_KEY, ids=(Id("age"),)))

        assert entry.keys[Column.DATA_TYPE] == "INT"
        assert entry.keys[Column.PROPERTIES] is None

    def test_secondary_index_entries_are_not_merged(self, store):
        for element in ("v1", "v2"):
            store.insert(
                EntityKind.SECONDARY_INDEX,
                Row(
                    Id.from_parts("by_name", "marko"),
                    {
                        Column.INDEX_LABEL_NAME: "by_name",
                        Column.FIELD_VALUES: "marko",
                        Column.ELEMENT_IDS: element,
                    },
                ),
            )
        store.commit()

        entries = store.query(
            Query(EntityKind.SECONDARY_INDEX, ids=(Id.from_parts("by_name", "marko"),))
        )

        assert [e.keys[Column.ELEMENT_IDS] for e in entries] == ["v1", "v2"]

    def test_delete_single_property(self, populated):
        populated.delete(
            EntityKind.VERTEX,
            Row(Id("v1"), {Column.ID: "v1", Column.LABEL: "person"}, (Property.of("age", ""),)),
        )
        populated.commit()

        (entry,) = populated.query(Query(EntityKind.VERTEX, ids=(Id("v1"),)))
        assert entry.properties() == {"name": "marko"}

    def test_delete_whole_vertex_by_keys(self, populated):
        populated.delete(
            EntityKind.VERTEX,
            Row(Id("v1"), {Column.ID: "v1", Column.LABEL: "person"}, (EXIST,)),
        )
        populated.commit()

        assert populated.query(Query(EntityKind.VERTEX, ids=(Id("v1"),))) == []

    def test_delete_edge_by_id(self, populated, session):
        populated.delete(EntityKind.EDGE, Row(Id.from_parts("v1", "OUT", "created", "", "v3")))
        populated.commit()

        assert session.row_count("edges") == 1

    def test_limit_counts_physical_rows(self, session):
        """With a fan-out factor of 1 the limit applies to rows, not vertices."""
        config = BackendConfig(query=QueryConfig(fan_out_factor=1))
        store = GraphStore(session, config=config)
        store.init()
        store.insert(EntityKind.VERTEX, vertex("v1", "person", name="marko", age="29"))
        store.insert(EntityKind.VERTEX, vertex("v2", "person", name="vadas"))
        store.commit()

        entries = store.query(Query(EntityKind.VERTEX, limit=2))

        assert len(entries) == 1
        assert entries[0].properties() == {"age": "29", "name": "marko"}

    def test_offset_is_ignored(self, populated):
        with_offset = populated.query(Query(EntityKind.VERTEX, offset=2))
        without_offset = populated.query(Query(EntityKind.VERTEX))
        assert [e.keys for e in with_offset] == [e.keys for e in without_offset]

    def test_unsupported_condition_executes_nothing(self, populated, session):
        executed = len(session.executed)
        condition = Or(
            Relation(Column.LABEL, RelationType.EQ, Value.scalar("a")),
            Relation(Column.LABEL, RelationType.EQ, Value.scalar("b")),
        )
        with pytest.raises(UnsupportedPredicateError):
            populated.query(Query(EntityKind.VERTEX, conditions=(condition,)))
        assert len(session.executed) == executed

    @pytest.mark.asyncio
    async def test_aquery_matches_query(self, populated):
        ids = tuple(
            Id.from_parts("v1", "OUT", label, "", target)
            for label, target in [("created", "v3"), ("knows", "v2")]
        )
        query = Query(EntityKind.EDGE, ids=ids)

        concurrent = await populated.aquery(query, max_concurrency=2)

        assert [e.keys for e in concurrent] == [e.keys for e in populated.query(query)]
        assert [e.keys[Column.LABEL] for e in concurrent] == ["created", "knows"]

    def test_has_changes(self, store):
        assert not store.has_changes()
        store.insert(EntityKind.VERTEX, vertex("v1", "person", name="marko"))
        assert store.has_changes()
        assert store.batch(EntityKind.VERTEX).has_changed()
        store.commit()
        assert not store.has_changes()

    def test_commit_stops_at_first_failure(self, store, session):
        """A rejected batch keeps its statements and later batches stay pending."""
        bad = Row(Id("v1"), {Column.LABEL: "person"}, (Property.of("name", "x"),))
        store.insert(EntityKind.VERTEX, bad)
        store.insert(EntityKind.EDGE, edge("v1", "knows", "v2"))

        with pytest.raises(ExecutionError):
            store.commit()

        assert store.batch(EntityKind.VERTEX).has_changed()
        assert store.batch(EntityKind.EDGE).has_changed()
        assert session.row_count("edges") == 0

    def test_commit_on_closed_session(self, store, session):
        store.insert(EntityKind.VERTEX, vertex("v1", "person", name="marko"))
        session.close()
        with pytest.raises(PreconditionError):
            store.commit()
        assert store.has_changes()

    def test_clear_drops_tables_and_pending_work(self, store, session):
        store.insert(EntityKind.VERTEX, vertex("v1", "person", name="marko"))
        store.clear()
        assert not store.has_changes()
        assert not session.has_table("vertices")

    def test_unknown_kind(self, session):
        store = GraphStore(session, tables=[PropertyKeyTable()])
        with pytest.raises(BackendError) as exc_info:
            store.table(EntityKind.VERTEX)
        assert exc_info.value.code == "UNKNOWN_KIND"

    def test_duplicate_tables_rejected(self, session):
        with pytest.raises(ValueError, match="Duplicate"):
            GraphStore(session, tables=[VertexTable(), VertexTable()])

    def test_default_tables(self, session):
        store = GraphStore(session)
        assert [type(t) for t in store.tables] == list(ALL_TABLES)
        assert repr(store.table(EntityKind.VERTEX)) == "VertexTable(table='vertices', kind=vertex)"
