"""
In-memory store session for testing.

This module provides a small wide-column store that interprets the
statement model directly. It is used for:
- Unit tests
- Integration tests of the tables and the graph store
- Local development without a Cassandra cluster

It enforces the CQL restrictions the translation layer must respect:
- INSERT must set every primary key column
- DELETE may only restrict primary key columns, including the full partition key
- ORDER BY only on clustering columns
- ORDER BY combined with IN only on unpaged selects
- LIMIT strictly positive and within a 32-bit int
- Unknown tables and columns are rejected
- Comparisons against a value of the wrong type are rejected

Invariants:
    - All data is lost on process exit
    - A Batch is applied all-or-nothing
    - Thread-safe; execute() is serialized by a lock

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep behavior aligned with what Cassandra accepts or rejects
"""

from __future__ import annotations

import logging
import operator
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..cql import MAX_LIMIT, Batch, Clause, Comparison, Delete, In, Insert, Select, Statement
from .base import Executable, QueryRejectedError, ResultRow, StoreConnectionError

logger = logging.getLogger(__name__)

_CREATE_TABLE_RE = re.compile(
    r"^\s*CREATE TABLE IF NOT EXISTS\s+(\w+)\s*\((.*)\)\s*;?\s*$", re.IGNORECASE | re.DOTALL
)
_PRIMARY_KEY_RE = re.compile(
    r"PRIMARY KEY\s*\(\s*\(([^)]*)\)\s*(?:,([^)]*))?\)", re.IGNORECASE
)
_CREATE_INDEX_RE = re.compile(
    r"^\s*CREATE INDEX\s+(\w+)\s+ON\s+(\w+)\s*\(\s*(\w+)\s*\)\s*;?\s*$", re.IGNORECASE
)
_DROP_TABLE_RE = re.compile(r"^\s*DROP TABLE IF EXISTS\s+(\w+)\s*;?\s*$", re.IGNORECASE)

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_PYTHON_TYPES: Dict[str, Tuple[type, ...]] = {
    "text": (str,),
    "varchar": (str,),
    "ascii": (str,),
    "int": (int,),
    "bigint": (int,),
    "smallint": (int,),
    "tinyint": (int,),
    "float": (float, int),
    "double": (float, int),
    "boolean": (bool,),
}


def _split_columns(text: str) -> List[str]:
    """Split column definitions on top-level commas (ignoring map<a, b>)."""
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    if "".join(current).strip():
        parts.append("".join(current).strip())
    return [p for p in parts if p]


def _names(text: Optional[str]) -> Tuple[str, ...]:
    if not text:
        return ()
    return tuple(n.strip().lower() for n in text.split(",") if n.strip())


@dataclass
class InMemoryTable:
    """One table: typed columns, primary key and rows keyed by primary key."""

    name: str
    columns: Dict[str, str]
    partition_keys: Tuple[str, ...]
    clustering_keys: Tuple[str, ...] = ()
    indexes: Dict[str, str] = field(default_factory=dict)
    rows: Dict[Tuple[Any, ...], Dict[str, Any]] = field(default_factory=dict)

    @property
    def primary_key(self) -> Tuple[str, ...]:
        return self.partition_keys + self.clustering_keys

    def check_column(self, column: str, statement: Any) -> None:
        if column not in self.columns:
            raise QueryRejectedError(f"Undefined column name {column}", statement)

    def check_value(self, column: str, value: Any, statement: Any) -> None:
        expected = _PYTHON_TYPES.get(self.columns[column])
        if value is None or expected is None:
            return
        if isinstance(value, bool) and bool not in expected:
            ok = False
        else:
            ok = isinstance(value, expected)
        if not ok:
            raise QueryRejectedError(
                f"Invalid {type(value).__name__} constant ({value!r}) "
                f"for \"{column}\" of type {self.columns[column]}",
                statement,
            )


class InMemorySession:
    """In-memory implementation of the Session protocol.

    Attributes:
        executed: Every statement executed so far (testing helper)

    Example:
        >>> session = InMemorySession()
        >>> session.execute("CREATE TABLE IF NOT EXISTS t(k text, v text, PRIMARY KEY ((k)));")
        >>> session.execute(Insert("t").value("k", "a").value("v", "1"))
        >>> list(session.execute(Select("t")))
        [{'k': 'a', 'v': '1'}]
    """

    def __init__(self) -> None:
        self._tables: Dict[str, InMemoryTable] = {}
        self._closed = False
        self._lock = threading.RLock()
        self.executed: List[Executable] = []

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the session; data is kept so tests can inspect it."""
        self._closed = True
        logger.debug("InMemorySession closed")

    def execute(self, statement: Executable) -> List[ResultRow]:
        """Execute a statement against the in-memory tables.

        Raises:
            StoreConnectionError: If the session is closed
            QueryRejectedError: If the statement would be rejected by Cassandra
        """
        if self._closed:
            raise StoreConnectionError("Session is closed")

        with self._lock:
            self.executed.append(statement)
            if isinstance(statement, str):
                self._execute_ddl(statement)
                return []
            if isinstance(statement, Select):
                return self._select(statement)
            if isinstance(statement, Batch):
                self._batch(statement)
                return []
            if isinstance(statement, (Insert, Delete)):
                self._mutate(statement)
                return []
            raise QueryRejectedError(f"Unsupported statement: {statement!r}", statement)

    # Testing helpers

    def table(self, name: str) -> InMemoryTable:
        """Get a table by name (testing helper).

        Raises:
            KeyError: If the table does not exist
        """
        return self._tables[name]

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def row_count(self, name: str) -> int:
        """Number of physical rows in a table (testing helper)."""
        return len(self._tables[name].rows)

    # DDL

    def _execute_ddl(self, text: str) -> None:
        match = _CREATE_TABLE_RE.match(text)
        if match:
            self._create_table(match.group(1).lower(), match.group(2), text)
            return

        match = _CREATE_INDEX_RE.match(text)
        if match:
            index, table_name, column = (g.lower() for g in match.groups())
            table = self._get_table(table_name, text)
            table.check_column(column, text)
            if index in table.indexes:
                raise QueryRejectedError(f"Index {index} already exists", text)
            table.indexes[index] = column
            return

        match = _DROP_TABLE_RE.match(text)
        if match:
            self._tables.pop(match.group(1).lower(), None)
            return

        raise QueryRejectedError(f"line 1:0 no viable alternative at input '{text}'", text)

    def _create_table(self, name: str, body: str, text: str) -> None:
        if name in self._tables:
            return

        pk_match = _PRIMARY_KEY_RE.search(body)
        if not pk_match:
            raise QueryRejectedError(f"No PRIMARY KEY specified for table {name}", text)

        columns: Dict[str, str] = {}
        for definition in _split_columns(body[: pk_match.start()]):
            column, _, col_type = definition.partition(" ")
            columns[column.strip().lower()] = col_type.strip().lower()

        partition_keys = _names(pk_match.group(1))
        clustering_keys = _names(pk_match.group(2))
        for key in partition_keys + clustering_keys:
            if key not in columns:
                raise QueryRejectedError(f"Unknown definition {key} referenced in PRIMARY KEY", text)

        self._tables[name] = InMemoryTable(name, columns, partition_keys, clustering_keys)

    # Reads

    def _get_table(self, name: str, statement: Any) -> InMemoryTable:
        table = self._tables.get(name.lower())
        if table is None:
            raise QueryRejectedError(f"unconfigured table {name}", statement)
        return table

    def _matches(self, row: Dict[str, Any], clause: Clause) -> bool:
        if isinstance(clause, In):
            return row.get(clause.column) in clause.values
        if isinstance(clause, Comparison):
            actual = row.get(clause.column)
            if actual is None:
                return False
            return _OPERATORS[clause.operator](actual, clause.value)
        raise QueryRejectedError(f"Unsupported clause: {clause!r}")

    def _check_clauses(self, table: InMemoryTable, clauses: Iterable[Clause], statement: Any) -> None:
        for clause in clauses:
            if isinstance(clause, In):
                table.check_column(clause.column, statement)
                for value in clause.values:
                    table.check_value(clause.column, value, statement)
            elif isinstance(clause, Comparison):
                table.check_column(clause.column, statement)
                if clause.operator not in _OPERATORS:
                    raise QueryRejectedError(f"Unsupported operator {clause.operator}", statement)
                table.check_value(clause.column, clause.value, statement)
            else:
                raise QueryRejectedError(f"Unsupported clause: {clause!r}", statement)

    def _select(self, select: Select) -> List[ResultRow]:
        table = self._get_table(select.table, select)
        self._check_clauses(table, select.clauses, select)
        for column, _ in select.orderings:
            table.check_column(column, select)
            if column not in table.clustering_keys:
                raise QueryRejectedError(
                    "Order by is currently only supported on the clustered columns "
                    "of the PRIMARY KEY",
                    select,
                )
        if select.orders_across_partitions and select.paged:
            raise QueryRejectedError(
                "Cannot page queries with both ORDER BY and a IN restriction on the "
                "partition key; you must either remove the ORDER BY or the IN and sort "
                "client side, or disable paging for this query",
                select,
            )
        if select.limit is not None and not 0 < select.limit <= MAX_LIMIT:
            raise QueryRejectedError(
                f"LIMIT must be strictly positive and at most {MAX_LIMIT}, got {select.limit}",
                select,
            )

        rows = [
            row
            for _, row in sorted(table.rows.items(), key=lambda item: item[0])
            if all(self._matches(row, c) for c in select.clauses)
        ]
        for column, descending in reversed(select.orderings):
            rows.sort(key=lambda r: r[column], reverse=descending)
        if select.limit is not None:
            rows = rows[: select.limit]

        return [{col: row.get(col) for col in table.columns} for row in rows]

    # Writes

    def _mutate(self, statement: Statement) -> None:
        if isinstance(statement, Insert):
            self._insert(statement)
        elif isinstance(statement, Delete):
            self._delete(statement)
        else:
            raise QueryRejectedError(
                f"Only INSERT and DELETE are allowed in a batch: {statement}", statement
            )

    def _insert(self, insert: Insert) -> None:
        table = self._get_table(insert.table, insert)
        values = insert.columns()
        for column, value in values.items():
            table.check_column(column, insert)
            table.check_value(column, value, insert)
        for key in table.primary_key:
            if values.get(key) is None:
                raise QueryRejectedError(f"Missing mandatory PRIMARY KEY part {key}", insert)

        pk = tuple(values[k] for k in table.primary_key)
        row = table.rows.setdefault(pk, {})
        row.update(values)

    def _delete(self, delete: Delete) -> None:
        table = self._get_table(delete.table, delete)
        self._check_clauses(table, delete.clauses, delete)
        restricted = set()
        for clause in delete.clauses:
            if not isinstance(clause, Comparison) or clause.operator != "=":
                raise QueryRejectedError(
                    f"Only EQ relations are supported on DELETE: {clause}", delete
                )
            if clause.column not in table.primary_key:
                raise QueryRejectedError(
                    f"Non PRIMARY KEY columns found in where clause: {clause.column}", delete
                )
            restricted.add(clause.column)
        missing = [k for k in table.partition_keys if k not in restricted]
        if missing:
            raise QueryRejectedError(
                f"Some partition key parts are missing: {', '.join(missing)}", delete
            )

        doomed = [
            pk
            for pk, row in table.rows.items()
            if all(self._matches(row, c) for c in delete.clauses)
        ]
        for pk in doomed:
            del table.rows[pk]

    def _batch(self, batch: Batch) -> None:
        snapshot = {
            name: {pk: dict(row) for pk, row in table.rows.items()}
            for name, table in self._tables.items()
        }
        try:
            for statement in batch.statements:
                self._mutate(statement)
        except QueryRejectedError:
            for name, rows in snapshot.items():
                self._tables[name].rows = rows
            raise
        logger.debug("Batch applied to in-memory store", extra={"statements": len(batch)})
