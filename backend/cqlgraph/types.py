"""
Core type definitions shared by the query and storage layers.

This module defines:
- Column: Every physical column name used by the graph tables
- EntityKind: The kind of record a table stores or a query returns
- Direction: Edge direction, stored by symbolic name
- Id: Canonical identifier of a graph element or schema object

Invariants:
    - Column values are the literal CQL column names (lower case)
    - Id.as_string() is the canonical serialized form
    - Composite ids join their parts with ID_SEPARATOR

How to change safely:
    - New columns must be added to the table layouts that use them
    - Never rename a Column value; it is the on-disk column name
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ID_SEPARATOR = ">"


class Column(Enum):
    """Physical column names of the graph tables."""

    ID = "id"
    NAME = "name"
    LABEL = "label"
    DATA_TYPE = "data_type"
    CARDINALITY = "cardinality"
    PROPERTIES = "properties"
    PRIMARY_KEYS = "primary_keys"
    SORT_KEYS = "sort_keys"
    INDEX_NAMES = "index_names"
    FREQUENCY = "frequency"
    SOURCE_LABEL = "source_label"
    TARGET_LABEL = "target_label"
    BASE_TYPE = "base_type"
    BASE_VALUE = "base_value"
    INDEX_TYPE = "index_type"
    FIELDS = "fields"
    PROPERTY_KEY = "property_key"
    PROPERTY_VALUE = "property_value"
    SOURCE_VERTEX = "source_vertex"
    DIRECTION = "direction"
    SORT_VALUES = "sort_values"
    TARGET_VERTEX = "target_vertex"
    INDEX_LABEL_NAME = "index_label_name"
    FIELD_VALUES = "field_values"
    ELEMENT_IDS = "element_ids"

    def __str__(self) -> str:
        return self.value


class EntityKind(Enum):
    """Kind of logical record a table holds."""

    PROPERTY_KEY = "property_key"
    VERTEX_LABEL = "vertex_label"
    EDGE_LABEL = "edge_label"
    INDEX_LABEL = "index_label"
    VERTEX = "vertex"
    EDGE = "edge"
    SECONDARY_INDEX = "secondary_index"


class Direction(Enum):
    """Edge direction relative to the source vertex."""

    OUT = "out"
    IN = "in"
    BOTH = "both"


@dataclass(frozen=True)
class Id:
    """Identifier of a graph element or schema object.

    Composite identifiers (edges, index entries) are the parts joined
    with ID_SEPARATOR.

    Example:
        >>> edge_id = Id.from_parts("v1", "OUT", "knows", "", "v2")
        >>> edge_id.split(5)
        ['v1', 'OUT', 'knows', '', 'v2']
    """

    value: str

    @classmethod
    def from_parts(cls, *parts: str) -> Id:
        """Build a composite id from its parts."""
        return cls(ID_SEPARATOR.join(parts))

    def as_string(self) -> str:
        return self.value

    def split(self, count: int) -> list[str]:
        """Split a composite id into exactly `count` parts.

        Raises:
            ValueError: If the id does not have `count` parts
        """
        if count == 1:
            return [self.value]
        parts = self.value.split(ID_SEPARATOR)
        if len(parts) != count:
            raise ValueError(
                f"Id '{self.value}' has {len(parts)} parts, expected {count}"
            )
        return parts

    def __str__(self) -> str:
        return self.value
