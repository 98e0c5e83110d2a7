"""
Graph store: a session plus every graph table and its pending batch.

The GraphStore is the entry point used by tools and by callers that do
not want to manage table handles and batches themselves. Each table owns
one MutationBatch; commit() submits the dirty ones table by table.

Invariants:
    - One table handle and one batch per entity kind
    - query() dispatches on Query.result_type
    - commit() stops at the first failing batch; it and later batches are kept

How to change safely:
    - Batches are per table; do not merge them into one cross-table batch
      without checking the store's batch size limits
"""

from __future__ import annotations

import logging
from typing import Iterable

from .batch import MutationBatch
from .config import BackendConfig
from .entry import Entry, Row
from .errors import BackendError
from .query import Query
from .store.base import Session
from .table import CassandraTable
from .tables import ALL_TABLES
from .types import EntityKind

logger = logging.getLogger(__name__)


class GraphStore:
    """Session-bound facade over the graph tables.

    Attributes:
        session: Store session used for every operation
        config: Backend configuration

    Example:
        >>> store = GraphStore(InMemorySession())
        >>> store.init()
        >>> store.insert(EntityKind.VERTEX, row)
        >>> store.commit()
        >>> store.query(Query(EntityKind.VERTEX, ids=(Id("v1"),)))
    """

    def __init__(
        self,
        session: Session,
        tables: Iterable[CassandraTable] | None = None,
        config: BackendConfig | None = None,
    ) -> None:
        self.session = session
        self.config = config or BackendConfig()
        if tables is None:
            tables = [cls(query_config=self.config.query) for cls in ALL_TABLES]

        self._tables: dict[EntityKind, CassandraTable] = {}
        for table in tables:
            if table.kind in self._tables:
                raise ValueError(f"Duplicate table for {table.kind.value}")
            self._tables[table.kind] = table
        self._batches = {kind: MutationBatch() for kind in self._tables}

    @property
    def tables(self) -> list[CassandraTable]:
        return list(self._tables.values())

    def table(self, kind: EntityKind) -> CassandraTable:
        """Table handle for an entity kind.

        Raises:
            BackendError: If no table stores the kind
        """
        try:
            return self._tables[kind]
        except KeyError:
            raise BackendError(
                f"No table registered for {kind.value}",
                code="UNKNOWN_KIND",
                details={"kind": kind.value},
            ) from None

    def batch(self, kind: EntityKind) -> MutationBatch:
        """Pending batch of a table (mostly for inspection)."""
        self.table(kind)
        return self._batches[kind]

    # Schema

    def init(self) -> None:
        """Create every table and index."""
        for table in self._tables.values():
            table.init(self.session)
        logger.info("Graph store initialized", extra={"tables": len(self._tables)})

    def clear(self) -> None:
        """Drop every table and discard pending mutations."""
        for table in self._tables.values():
            table.clear(self.session)
        for batch in self._batches.values():
            batch.clear()
        logger.info("Graph store cleared", extra={"tables": len(self._tables)})

    # Reads

    def query(self, query: Query) -> list[Entry]:
        return self.table(query.result_type).query(self.session, query)

    async def aquery(self, query: Query, max_concurrency: int | None = None) -> list[Entry]:
        table = self.table(query.result_type)
        return await table.aquery(self.session, query, max_concurrency)

    # Writes

    def insert(self, kind: EntityKind, row: Row) -> None:
        self.table(kind).insert(row, self._batches[kind])

    def delete(self, kind: EntityKind, row: Row) -> None:
        self.table(kind).delete(row, self._batches[kind])

    def has_changes(self) -> bool:
        return any(batch.has_changed() for batch in self._batches.values())

    def commit(self) -> None:
        """Commit every table's pending mutations.

        Raises:
            PreconditionError: If the session has been closed
            ExecutionError: If the store rejects a batch
        """
        for kind, table in self._tables.items():
            batch = self._batches[kind]
            if batch.has_changed():
                table.commit(self.session, batch)
