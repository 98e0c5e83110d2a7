"""
Concrete graph tables.

Schema tables (one physical row per schema object):
    property_keys, vertex_labels, edge_labels, index_labels -> PRIMARY KEY ((name))

Element tables (one physical row per property, EAV layout):
    vertices -> PRIMARY KEY ((id), property_key)
    edges    -> PRIMARY KEY ((source_vertex), direction, label, sort_values,
                             target_vertex, property_key)

Index table:
    secondary_indexes -> PRIMARY KEY ((index_label_name), field_values, element_ids)

Invariants:
    - An element without properties is stored as a single EXIST row
    - Element tables merge the physical rows of one record into one Entry
    - Column lists come from the static layouts, never from the tables

How to change safely:
    - Changing a primary key changes the on-disk format; add a new table instead
"""

from __future__ import annotations

from dataclasses import replace

from .batch import MutationBatch
from .entry import EXIST, Entry, Row
from .store.base import Session
from .table import CassandraTable
from .types import Column, EntityKind


class _SchemaTable(CassandraTable):
    """Schema object table keyed by name only."""

    TABLE: str
    KIND: EntityKind

    def __init__(self, **kwargs) -> None:
        super().__init__(self.TABLE, self.KIND, **kwargs)

    def init(self, session: Session) -> None:
        self.schema.create_table(
            session, self.layout.columns, primary_keys=self.layout.id_columns
        )


class PropertyKeyTable(_SchemaTable):
    TABLE = "property_keys"
    KIND = EntityKind.PROPERTY_KEY


class VertexLabelTable(_SchemaTable):
    TABLE = "vertex_labels"
    KIND = EntityKind.VERTEX_LABEL


class EdgeLabelTable(_SchemaTable):
    TABLE = "edge_labels"
    KIND = EntityKind.EDGE_LABEL


class IndexLabelTable(_SchemaTable):
    TABLE = "index_labels"
    KIND = EntityKind.INDEX_LABEL


class _ElementTable(CassandraTable):
    """Vertex/edge table storing one physical row per property."""

    TABLE: str
    KIND: EntityKind
    LABEL_INDEX: str

    def __init__(self, **kwargs) -> None:
        super().__init__(self.TABLE, self.KIND, **kwargs)

    def init(self, session: Session) -> None:
        self.schema.create_table(
            session,
            self.layout.columns,
            primary_keys=self.layout.id_columns + (Column.PROPERTY_KEY,),
        )
        self.schema.create_index(session, self.LABEL_INDEX, Column.LABEL)

    def insert(self, row: Row, batch: MutationBatch) -> None:
        if not row.cells:
            row = replace(row, cells=(EXIST,))
        super().insert(row, batch)

    def merge_entries(self, entries: list[Entry]) -> list[Entry]:
        """Fold the per-property entries of each record into one entry.

        Records keep the order in which their first row was seen.
        """
        merged: dict[tuple, Entry] = {}
        for entry in entries:
            identity = entry.identity()
            current = merged.get(identity)
            if current is None:
                merged[identity] = Entry(entry.kind, dict(entry.keys), list(entry.cells))
            else:
                current.cells.extend(entry.cells)
        return list(merged.values())


class VertexTable(_ElementTable):
    TABLE = "vertices"
    KIND = EntityKind.VERTEX
    LABEL_INDEX = "vertices_label_index"

    def delete(self, row: Row, batch: MutationBatch) -> None:
        # label is a regular column and cannot restrict a DELETE
        if Column.LABEL in row.keys and len(row.keys) > 1:
            keys = {k: v for k, v in row.keys.items() if k is not Column.LABEL}
            row = replace(row, keys=keys)
        super().delete(row, batch)


class EdgeTable(_ElementTable):
    TABLE = "edges"
    KIND = EntityKind.EDGE
    LABEL_INDEX = "edges_label_index"


class SecondaryIndexTable(CassandraTable):
    TABLE = "secondary_indexes"
    KIND = EntityKind.SECONDARY_INDEX

    def __init__(self, **kwargs) -> None:
        super().__init__(self.TABLE, self.KIND, **kwargs)

    def init(self, session: Session) -> None:
        self.schema.create_table(
            session,
            self.layout.columns,
            primary_keys=self.layout.id_columns + (Column.ELEMENT_IDS,),
        )


ALL_TABLES = (
    PropertyKeyTable,
    VertexLabelTable,
    EdgeLabelTable,
    IndexLabelTable,
    VertexTable,
    EdgeTable,
    SecondaryIndexTable,
)
