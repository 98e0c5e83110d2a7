"""
Entry codec: physical rows <-> logical records.

Decoding classifies every column of a physical row with the entity kind's
static layout. Encoding turns a Row into inserts (one per property) or
deletes (three granularities, chosen by the shape of the Row):

    keys empty                      -> delete by id columns
    cells empty or contain EXIST    -> delete every row matching keys
    otherwise                       -> one delete per property

Invariants:
    - A physical row decodes to one Entry with at most one cell
    - N properties encode to N inserts sharing the same keys
    - Encoding never mutates the Row
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..cql import Delete, Insert, eq
from ..errors import BackendError
from ..types import Column, EntityKind, Id
from .layout import COLUMN_LAYOUTS, ColumnLayout, ColumnRole, layout_for
from .models import EXIST, Entry, Property, Row


class EntryCodec:
    """Encodes Rows to statements and decodes physical rows to Entries.

    Attributes:
        table: Physical table the statements target
        layouts: Entity kind -> column layout

    Example:
        >>> codec = EntryCodec("vertices")
        >>> row = Row(Id("v1"), {Column.ID: "v1", Column.LABEL: "person"},
        ...           (Property.of("name", "marko"),))
        >>> [str(s) for s in codec.encode_insert(row)]
        ["INSERT INTO vertices (id, label, property_key, property_value) VALUES ('v1', 'person', 'name', 'marko')"]
    """

    def __init__(
        self,
        table: str,
        layouts: Mapping[EntityKind, ColumnLayout] = COLUMN_LAYOUTS,
    ) -> None:
        self.table = table
        self.layouts = layouts

    def id_columns(self, kind: EntityKind) -> list[str]:
        return [col.value for col in layout_for(kind, self.layouts).id_columns]

    def id_values(self, kind: EntityKind, id: Id) -> list[str]:
        """Split an id into one value per id column.

        Raises:
            ValueError: If the id does not match the column count
        """
        return id.split(layout_for(kind, self.layouts).arity)

    # ------------------------------------------------------------------ decode

    def decode(self, kind: EntityKind, row: Mapping[str, Any]) -> Entry:
        """Decode one physical row.

        Args:
            kind: Entity kind the row belongs to
            row: Column name -> value, in column definition order

        Returns:
            Entry with the identity columns and at most one cell

        Raises:
            BackendError: If the row contains a column unknown to the layout
        """
        layout = layout_for(kind, self.layouts)
        entry = Entry(kind)
        values = {name.lower(): value for name, value in row.items()}

        for name, value in values.items():
            role = layout.role(name)
            if role is ColumnRole.IDENTITY:
                entry.column(Column(name), value)
            elif role is ColumnRole.CELL_KEY:
                key_col = Column(name)
                value_col = layout.cell_value_column(key_col)
                if value_col.value not in values:
                    raise BackendError(
                        f"Row has '{name}' but no '{value_col.value}' column",
                        code="MISSING_CELL_VALUE",
                        details={"table": self.table, "column": value_col.value},
                    )
                cell = Property(key_col, value, value_col, values[value_col.value])
                if cell != EXIST:
                    entry.add_cell(cell)
            # CELL_VALUE columns are read through their key column

        return entry

    def decode_all(self, kind: EntityKind, rows: Iterable[Mapping[str, Any]]) -> list[Entry]:
        return [self.decode(kind, row) for row in rows]

    # ------------------------------------------------------------------ encode

    def encode_insert(self, row: Row) -> list[Insert]:
        """Encode a Row as inserts.

        Raises:
            ValueError: If the row has neither keys nor cells
        """
        if row.is_empty():
            raise ValueError(f"Cannot insert an empty row (id={row.id})")

        base = Insert(self.table)
        for key, value in row.keys.items():
            base = base.value(key.value, value)

        if not row.cells:
            return [base]

        return [
            base.value(cell.name_key.value, cell.name).value(cell.value_key.value, cell.value)
            for cell in row.cells
        ]

    def encode_delete(self, row: Row, kind: EntityKind) -> list[Delete]:
        """Encode a Row as deletes.

        Args:
            row: Delete request
            kind: Entity kind, used to map row.id onto its id columns

        Returns:
            Deletes for the granularity selected by the row's shape
        """
        # delete by id
        if not row.keys:
            names = self.id_columns(kind)
            values = self.id_values(kind, row.id)
            delete = Delete(self.table)
            for name, value in zip(names, values):
                delete = delete.where(eq(name, value))
            return [delete]

        base = Delete(self.table)
        for key, value in row.keys.items():
            base = base.where(eq(key.value, value))

        # delete every physical row of the record
        if not row.cells or EXIST in row.cells:
            return [base]

        # delete one physical row per property
        return [base.where(eq(cell.name_key.value, cell.name)) for cell in row.cells]
