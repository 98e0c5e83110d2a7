"""
Static column classification of every entity kind.

Each physical column of a graph table plays one role:
- IDENTITY: part of the record's identity, copied to Entry.keys
- CELL_KEY: holds a property key; paired with a CELL_VALUE column
- CELL_VALUE: holds a property value; only read through its key

The layouts are built once at import time and never change.

Invariants:
    - id_columns are IDENTITY columns, in primary-key order
    - Every CELL_KEY has exactly one CELL_VALUE partner
    - Every column of a table appears in its layout

How to change safely:
    - Adding a column to a table requires adding it to the layout
    - Never change id_columns of an existing kind; stored ids depend on them
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from ..errors import BackendError
from ..types import Column, EntityKind


class ColumnRole(Enum):
    IDENTITY = "identity"
    CELL_KEY = "cell_key"
    CELL_VALUE = "cell_value"


@dataclass(frozen=True)
class ColumnLayout:
    """Classification record for the columns of one entity kind.

    Attributes:
        kind: Entity kind described by this layout
        id_columns: Columns an Id maps onto, in order
        identity: Remaining identity columns (not part of the Id)
        cells: CELL_KEY column -> CELL_VALUE column
    """

    kind: EntityKind
    id_columns: tuple[Column, ...]
    identity: tuple[Column, ...] = ()
    cells: Mapping[Column, Column] = field(default_factory=dict, hash=False)
    _roles: Mapping[str, ColumnRole] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        if not self.id_columns:
            raise ValueError(f"Layout for {self.kind} needs at least one id column")
        object.__setattr__(self, "cells", MappingProxyType(dict(self.cells)))
        roles: dict[str, ColumnRole] = {}
        for col in self.id_columns + self.identity:
            roles[col.value] = ColumnRole.IDENTITY
        for key_col, value_col in self.cells.items():
            roles[key_col.value] = ColumnRole.CELL_KEY
            roles[value_col.value] = ColumnRole.CELL_VALUE
        object.__setattr__(self, "_roles", MappingProxyType(roles))

    @property
    def arity(self) -> int:
        return len(self.id_columns)

    @property
    def columns(self) -> tuple[Column, ...]:
        """All columns of the layout, identity first."""
        out = list(self.id_columns + self.identity)
        for key_col, value_col in self.cells.items():
            out.extend((key_col, value_col))
        return tuple(out)

    def role(self, column_name: str) -> ColumnRole:
        """Role of a physical column.

        Raises:
            BackendError: If the column is not part of this layout
        """
        try:
            return self._roles[column_name.lower()]
        except KeyError:
            raise BackendError(
                f"Unknown column '{column_name}' for {self.kind.value}",
                code="UNKNOWN_COLUMN",
                details={"column": column_name, "kind": self.kind.value},
            ) from None

    def cell_value_column(self, key_column: Column) -> Column:
        return self.cells[key_column]


_PROPERTY_CELLS = {Column.PROPERTY_KEY: Column.PROPERTY_VALUE}

COLUMN_LAYOUTS: Mapping[EntityKind, ColumnLayout] = MappingProxyType(
    {
        EntityKind.PROPERTY_KEY: ColumnLayout(
            EntityKind.PROPERTY_KEY,
            id_columns=(Column.NAME,),
            identity=(Column.DATA_TYPE, Column.CARDINALITY, Column.PROPERTIES),
        ),
        EntityKind.VERTEX_LABEL: ColumnLayout(
            EntityKind.VERTEX_LABEL,
            id_columns=(Column.NAME,),
            identity=(Column.PRIMARY_KEYS, Column.INDEX_NAMES, Column.PROPERTIES),
        ),
        EntityKind.EDGE_LABEL: ColumnLayout(
            EntityKind.EDGE_LABEL,
            id_columns=(Column.NAME,),
            identity=(
                Column.FREQUENCY,
                Column.SOURCE_LABEL,
                Column.TARGET_LABEL,
                Column.SORT_KEYS,
                Column.INDEX_NAMES,
                Column.PROPERTIES,
            ),
        ),
        EntityKind.INDEX_LABEL: ColumnLayout(
            EntityKind.INDEX_LABEL,
            id_columns=(Column.NAME,),
            identity=(Column.BASE_TYPE, Column.BASE_VALUE, Column.INDEX_TYPE, Column.FIELDS),
        ),
        EntityKind.VERTEX: ColumnLayout(
            EntityKind.VERTEX,
            id_columns=(Column.ID,),
            identity=(Column.LABEL,),
            cells=_PROPERTY_CELLS,
        ),
        EntityKind.EDGE: ColumnLayout(
            EntityKind.EDGE,
            id_columns=(
                Column.SOURCE_VERTEX,
                Column.DIRECTION,
                Column.LABEL,
                Column.SORT_VALUES,
                Column.TARGET_VERTEX,
            ),
            cells=_PROPERTY_CELLS,
        ),
        EntityKind.SECONDARY_INDEX: ColumnLayout(
            EntityKind.SECONDARY_INDEX,
            id_columns=(Column.INDEX_LABEL_NAME, Column.FIELD_VALUES),
            identity=(Column.ELEMENT_IDS,),
        ),
    }
)


def layout_for(
    kind: EntityKind,
    layouts: Mapping[EntityKind, ColumnLayout] = COLUMN_LAYOUTS,
) -> ColumnLayout:
    """Look up the layout of an entity kind.

    Raises:
        BackendError: If no layout is registered for the kind
    """
    try:
        return layouts[kind]
    except KeyError:
        raise BackendError(
            f"No column layout registered for {kind.value}",
            code="UNKNOWN_KIND",
            details={"kind": kind.value},
        ) from None
