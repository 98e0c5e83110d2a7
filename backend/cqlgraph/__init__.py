"""
cqlgraph - Cassandra storage backend for a property graph.

This package translates a backend-agnostic graph query model into CQL
and reconstructs graph records from Cassandra's wide-row layout:
- Conditions (AND of comparisons) become CQL WHERE clauses
- Queries become one or more SELECTs, fanned out by id
- Vertices and edges are stored one physical row per property (EAV)
- Writes are accumulated in a batch and committed atomically

Architecture:
    Query ──▶ QueryPlanner ──▶ Select* ──▶ Session ──▶ rows
                                                         │
    Entry* ◀── merge_entries ◀── EntryCodec.decode ◀─────┘

    Row ──▶ EntryCodec.encode_insert/delete ──▶ MutationBatch ──▶ Session (BATCH)

Invariants:
    - OR and != are rejected before any statement reaches the store
    - Query offsets are ignored (logged); limits are scaled to physical rows
    - A failed commit leaves the batch intact
    - Column layouts per entity kind are static

How to change safely:
    - Column names are on-disk names; never rename them
    - Test against InMemorySession first, then tests/e2e on a real cluster
"""

from ._version import __version__
from .batch import MutationBatch
from .config import BackendConfig, CassandraConfig, ObservabilityConfig, QueryConfig
from .entry import EXIST, Entry, EntryCodec, Property, Row
from .errors import BackendError, ExecutionError, PreconditionError, UnsupportedPredicateError
from .graph_store import GraphStore
from .query import ConditionTranslator, Query, QueryPlanner
from .schema import SchemaManager
from .table import CassandraTable
from .types import Column, Direction, EntityKind, Id

__all__ = [
    "__version__",
    # Core
    "GraphStore",
    "CassandraTable",
    "MutationBatch",
    "SchemaManager",
    "ConditionTranslator",
    "QueryPlanner",
    "EntryCodec",
    # Model
    "Query",
    "Row",
    "Entry",
    "Property",
    "EXIST",
    "Id",
    "Column",
    "EntityKind",
    "Direction",
    # Config
    "BackendConfig",
    "CassandraConfig",
    "QueryConfig",
    "ObservabilityConfig",
    # Errors
    "BackendError",
    "UnsupportedPredicateError",
    "PreconditionError",
    "ExecutionError",
]
