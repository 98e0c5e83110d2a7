"""
Logical records exchanged with the entry codec.

- Property: one EAV-encoded attribute (key column/value + value column/value)
- Row: a write or delete request for one record
- Entry: a record decoded from physical rows

Invariants:
    - Property and Row are immutable; the codec never mutates them
    - EXIST marks a row that carries identity only, no real property
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ..types import Column, EntityKind, Id


@dataclass(frozen=True)
class Property:
    """A single property occurrence in the EAV layout.

    Attributes:
        name_key: Column holding the property key
        name: Serialized property key
        value_key: Column holding the property value
        value: Serialized property value
    """

    name_key: Column
    name: str
    value_key: Column
    value: str

    @classmethod
    def of(cls, name: str, value: str) -> Property:
        """Property stored in the standard property_key/property_value columns."""
        return cls(Column.PROPERTY_KEY, name, Column.PROPERTY_VALUE, value)


EXIST = Property(Column.PROPERTY_KEY, "~exist", Column.PROPERTY_VALUE, "")


@dataclass(frozen=True)
class Row:
    """Write/delete request for one logical record.

    Attributes:
        id: Identifier of the record
        keys: Identity column values (partition + clustering columns)
        cells: Properties, each stored as its own physical row
    """

    id: Id
    keys: Mapping[Column, str] = field(default_factory=dict, hash=False)
    cells: tuple[Property, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", MappingProxyType(dict(self.keys)))
        object.__setattr__(self, "cells", tuple(self.cells))

    def is_empty(self) -> bool:
        return len(self.keys) + len(self.cells) == 0


@dataclass
class Entry:
    """Logical record decoded from the store.

    Attributes:
        kind: Entity kind of the record
        keys: Identity column -> value
        cells: Decoded properties
    """

    kind: EntityKind
    keys: dict[Column, str | None] = field(default_factory=dict)
    cells: list[Property] = field(default_factory=list)

    def column(self, key: Column, value: str | None) -> None:
        self.keys[key] = value

    def add_cell(self, cell: Property) -> None:
        self.cells.append(cell)

    def identity(self) -> tuple[tuple[Column, str | None], ...]:
        """Hashable view of the identity columns."""
        return tuple(sorted(self.keys.items(), key=lambda kv: kv[0].value))

    def properties(self) -> dict[str, str]:
        """Property name -> value for the decoded cells."""
        return {cell.name: cell.value for cell in self.cells}
