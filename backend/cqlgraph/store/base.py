"""
Base protocol and errors for store sessions.

A Session is the execution channel to the wide-column store. It is owned
and lifecycle-managed outside the translation layer; tables only check
liveness before committing and otherwise treat it as stateless.

Invariants:
    - execute() accepts Select, Insert, Delete, Batch or raw DDL text
    - Rows are mappings of column name -> value in column definition order
    - A Batch is applied all-or-nothing
    - Rejected statements raise QueryRejectedError, never a driver exception

How to change safely:
    - Protocol changes require updating every implementation
    - Keep driver-specific types out of this module
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Iterable, Mapping, Protocol, Union, runtime_checkable

from ..cql import Statement

ResultRow = Mapping[str, Any]
Executable = Union[Statement, str]


class StoreError(Exception):
    """Base exception for store session operations."""
    pass


class StoreConnectionError(StoreError):
    """Connection to the store failed or was lost."""
    pass


class QueryRejectedError(StoreError):
    """The store refused a statement (invalid query shape, unknown table...).

    Attributes:
        statement: The statement that was rejected
    """

    def __init__(self, message: str, statement: Any = None) -> None:
        super().__init__(message)
        self.statement = statement


@runtime_checkable
class Session(Protocol):
    """Protocol for store sessions.

    Example:
        >>> session = InMemorySession()
        >>> session.execute("CREATE TABLE IF NOT EXISTS t(k text, PRIMARY KEY ((k)));")
        >>> rows = list(session.execute(Select("t")))
    """

    @abstractmethod
    def execute(self, statement: Executable) -> Iterable[ResultRow]:
        """Execute one statement.

        Args:
            statement: Statement object or raw DDL text

        Returns:
            Result rows (empty for mutations and DDL)

        Raises:
            QueryRejectedError: If the store rejects the statement
            StoreConnectionError: If the session cannot reach the store
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the session."""
        ...

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """Whether the session has been closed."""
        ...
