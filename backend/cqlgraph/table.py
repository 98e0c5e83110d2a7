"""
Table handle: one physical Cassandra table of the graph store.

A CassandraTable wires the query planner, the entry codec and the schema
manager together for a single table:

    query  -> planner.plan -> session.execute (per select) -> codec.decode -> merge_entries
    insert -> codec.encode_insert -> batch
    delete -> codec.encode_delete -> batch
    commit -> batch.commit(session)

Invariants:
    - Results are concatenated in statement order
    - A failed planning step executes nothing
    - Tables hold no session and no pending state; the batch is passed in

How to change safely:
    - Subclasses must implement init() and keep it idempotent for CREATE TABLE
    - merge_entries() must not reorder records, callers rely on statement order
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Mapping

from .batch import MutationBatch
from .config import QueryConfig
from .cql import Select
from .entry import COLUMN_LAYOUTS, ColumnLayout, Entry, EntryCodec, Row, layout_for
from .query import Query, QueryPlanner
from .schema import SchemaManager
from .store.base import ResultRow, Session
from .types import EntityKind

logger = logging.getLogger(__name__)


class CassandraTable(ABC):
    """Base class of the graph tables.

    Attributes:
        table: Physical table name
        kind: Entity kind stored in the table
        planner: Query -> selects
        codec: Rows <-> statements and entries
        schema: DDL for the table
    """

    def __init__(
        self,
        table: str,
        kind: EntityKind,
        layouts: Mapping[EntityKind, ColumnLayout] = COLUMN_LAYOUTS,
        query_config: QueryConfig | None = None,
    ) -> None:
        query_config = query_config or QueryConfig()
        self.table = table
        self.kind = kind
        self.layouts = layouts
        self.max_concurrency = query_config.max_concurrency
        self.planner = QueryPlanner(table, layouts, query_config.fan_out_factor)
        self.codec = EntryCodec(table, layouts)
        self.schema = SchemaManager(table)

    @property
    def layout(self) -> ColumnLayout:
        return layout_for(self.kind, self.layouts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table!r}, kind={self.kind.value})"

    # Reads

    def query(self, session: Session, query: Query) -> list[Entry]:
        """Answer a query by running its selects one after another.

        Raises:
            UnsupportedPredicateError: If a condition cannot be expressed in CQL
            QueryRejectedError: If the store rejects a select
        """
        entries: list[Entry] = []
        for select in self.planner.plan(query):
            entries.extend(self._fetch(session, select))
        return self.merge_entries(entries)

    async def aquery(
        self,
        session: Session,
        query: Query,
        max_concurrency: int | None = None,
    ) -> list[Entry]:
        """Answer a query running up to max_concurrency selects at once.

        Selects execute in the default executor; the results keep the
        order of the planned selects.

        Raises:
            UnsupportedPredicateError: If a condition cannot be expressed in CQL
            QueryRejectedError: If the store rejects a select
        """
        selects = self.planner.plan(query)
        semaphore = asyncio.Semaphore(max_concurrency or self.max_concurrency)
        loop = asyncio.get_running_loop()

        async def fetch(select: Select) -> list[Entry]:
            async with semaphore:
                return await loop.run_in_executor(None, self._fetch, session, select)

        results = await asyncio.gather(*(fetch(s) for s in selects))
        entries = [entry for chunk in results for entry in chunk]
        return self.merge_entries(entries)

    def _fetch(self, session: Session, select: Select) -> list[Entry]:
        rows: list[ResultRow] = list(session.execute(select))
        logger.debug("Fetched %d row(s) from %s", len(rows), self.table)
        return self.codec.decode_all(self.kind, rows)

    def merge_entries(self, entries: list[Entry]) -> list[Entry]:
        """Post-process decoded entries; the default keeps them as they are."""
        return entries

    # Writes

    def insert(self, row: Row, batch: MutationBatch) -> None:
        batch.extend(self.codec.encode_insert(row))

    def delete(self, row: Row, batch: MutationBatch) -> None:
        batch.extend(self.codec.encode_delete(row, self.kind))

    def commit(self, session: Session, batch: MutationBatch) -> None:
        """Commit a batch of mutations for this table.

        Raises:
            PreconditionError: If the session has been closed
            ExecutionError: If the store rejects the batch
        """
        batch.commit(session)

    # Schema

    @abstractmethod
    def init(self, session: Session) -> None:
        """Create the table and its indexes."""
        ...

    def clear(self, session: Session) -> None:
        """Drop the table."""
        self.schema.drop_table(session)
