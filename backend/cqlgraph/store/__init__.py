"""
Store sessions for cqlgraph.

This module provides the execution channel to the wide-column store:
- Session protocol and store errors
- InMemorySession for tests and local development
- CassandraSession backed by cassandra-driver

Invariants:
    - Tables depend only on the Session protocol
    - Driver exceptions never escape a Session
"""

from .base import (
    Executable,
    QueryRejectedError,
    ResultRow,
    Session,
    StoreConnectionError,
    StoreError,
)
from .cassandra import CASSANDRA_AVAILABLE, CassandraSession
from .memory import InMemorySession, InMemoryTable

__all__ = [
    "Session",
    "Executable",
    "ResultRow",
    "StoreError",
    "StoreConnectionError",
    "QueryRejectedError",
    "InMemorySession",
    "InMemoryTable",
    "CassandraSession",
    "CASSANDRA_AVAILABLE",
]
