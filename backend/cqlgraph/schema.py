"""
Schema manager: DDL for one physical table.

Generates and executes the three statements a table needs over its
lifetime:

    CREATE TABLE IF NOT EXISTS <t>(<c> <type>, ..., PRIMARY KEY ((<p>, ...), <c1>, ...));
    CREATE INDEX <name> ON <t>(<col>);
    DROP TABLE IF EXISTS <t>;

Invariants:
    - Columns without an explicit type are declared as text
    - The primary key is split into partition and clustering parts
    - Generation is pure; only the executing variants touch a session

How to change safely:
    - The DDL text is parsed by InMemorySession; keep both in step
    - Never add ALTER here; migrations are out of this module's scope
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from .store.base import Session

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_TYPE = "text"


def _name(column: object) -> str:
    # accepts Column members as well as plain strings
    return str(getattr(column, "value", column))


class SchemaManager:
    """Builds and runs the DDL of one table.

    Attributes:
        table: Physical table name
    """

    def __init__(self, table: str) -> None:
        self.table = table

    def create_table_cql(
        self,
        columns: Sequence[object],
        column_types: Mapping[object, str] | None = None,
        primary_keys: Sequence[object] | None = None,
        partition_keys: Sequence[object] | None = None,
        clustering_keys: Sequence[object] | None = None,
    ) -> str:
        """Render CREATE TABLE IF NOT EXISTS for this table.

        Either primary_keys (first column is the partition key, the rest are
        clustering keys) or partition_keys (plus optional clustering_keys)
        must be given.

        Args:
            columns: Column names in declaration order
            column_types: Column -> CQL type; missing columns default to text
            primary_keys: Full primary key
            partition_keys: Partition key columns
            clustering_keys: Clustering key columns

        Raises:
            ValueError: If no key is given, both forms are given, or a key
                column is not declared

        Example:
            >>> SchemaManager("t").create_table_cql(["a", "b", "c"], primary_keys=["a", "b"])
            'CREATE TABLE IF NOT EXISTS t(a text, b text, c text, PRIMARY KEY ((a), b));'
        """
        if primary_keys and partition_keys:
            raise ValueError("Pass either primary_keys or partition_keys, not both")
        if primary_keys:
            partition = [_name(primary_keys[0])]
            clustering = [_name(k) for k in primary_keys[1:]]
        elif partition_keys:
            partition = [_name(k) for k in partition_keys]
            clustering = [_name(k) for k in clustering_keys or ()]
        else:
            raise ValueError(f"Table {self.table} needs a primary key")

        names = [_name(c) for c in columns]
        for key in partition + clustering:
            if key not in names:
                raise ValueError(f"Key column '{key}' is not a column of {self.table}")

        types = {_name(c): t for c, t in (column_types or {}).items()}
        definitions = ", ".join(f"{n} {types.get(n, DEFAULT_COLUMN_TYPE)}" for n in names)

        key = "(" + ", ".join(partition) + ")"
        if clustering:
            key += ", " + ", ".join(clustering)

        return f"CREATE TABLE IF NOT EXISTS {self.table}({definitions}, PRIMARY KEY ({key}));"

    def create_index_cql(self, name: str, column: object) -> str:
        return f"CREATE INDEX {name} ON {self.table}({_name(column)});"

    def drop_table_cql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.table};"

    def create_table(self, session: Session, columns: Sequence[object], **keys) -> None:
        """Create the table; keyword arguments as for create_table_cql()."""
        cql = self.create_table_cql(columns, **keys)
        logger.info("Creating table", extra={"table": self.table})
        logger.debug(cql)
        session.execute(cql)

    def create_index(self, session: Session, name: str, column: object) -> None:
        cql = self.create_index_cql(name, column)
        logger.info("Creating index", extra={"table": self.table, "index": name})
        session.execute(cql)

    def drop_table(self, session: Session) -> None:
        logger.info("Dropping table", extra={"table": self.table})
        session.execute(self.drop_table_cql())
