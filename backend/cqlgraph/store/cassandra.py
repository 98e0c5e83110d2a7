"""
Cassandra session backed by the DataStax cassandra-driver.

This module adapts a driver Cluster/Session to the Session protocol. It works with:
- Apache Cassandra
- ScyllaDB
- Amazon Keyspaces (with a suitable auth provider)

Statements are rendered to parameterized CQL and executed as
SimpleStatements; a Batch becomes one LOGGED BatchStatement so the
mutations of a commit are applied atomically.

Invariants:
    - Rows are returned as dicts (dict_factory)
    - Unpaged selects run with fetch_size=None (a single page)
    - Driver validation errors surface as QueryRejectedError
    - Unreachable clusters surface as StoreConnectionError
    - The keyspace is created on connect() only when configured to

How to change safely:
    - Test against a real cluster (see tests/e2e) before deploying
    - Keep every driver import inside the guarded block below
"""

from __future__ import annotations

import logging
from typing import Any

from ..cql import Batch, Select, Statement
from .base import Executable, QueryRejectedError, ResultRow, StoreConnectionError, StoreError

logger = logging.getLogger(__name__)

# Try to import cassandra-driver, provide helpful message if not installed
try:
    from cassandra import (
        OperationTimedOut,
        RequestExecutionException,
        RequestValidationException,
    )
    from cassandra.auth import PlainTextAuthProvider
    from cassandra.cluster import Cluster, NoHostAvailable
    from cassandra.query import BatchStatement, BatchType, SimpleStatement, dict_factory

    CASSANDRA_AVAILABLE = True
except ImportError:
    CASSANDRA_AVAILABLE = False
    Cluster = None


class CassandraSession:
    """Cassandra implementation of the Session protocol.

    Attributes:
        config: CassandraConfig with connection settings

    Example:
        >>> session = CassandraSession(CassandraConfig(contact_points=("10.0.0.1",)))
        >>> session.connect()
        >>> rows = session.execute(Select("vertices").where(eq("id", "v1")))
        >>> session.close()
    """

    def __init__(self, config: Any) -> None:
        """Initialize the session.

        Args:
            config: CassandraConfig instance

        Raises:
            ImportError: If cassandra-driver is not installed
        """
        if not CASSANDRA_AVAILABLE:
            raise ImportError(
                "cassandra-driver is required for the Cassandra backend. "
                "Install with: pip install cassandra-driver"
            )

        self.config = config
        self._cluster: Cluster | None = None
        self._session: Any = None
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._session.is_shutdown

    @property
    def is_closed(self) -> bool:
        if self._closed:
            return True
        return self._session is not None and self._session.is_shutdown

    def connect(self) -> None:
        """Connect to the cluster and switch to the configured keyspace.

        Raises:
            StoreConnectionError: If no host can be reached
        """
        if self.is_connected:
            return

        kwargs: dict[str, Any] = {
            "contact_points": list(self.config.contact_points),
            "port": self.config.port,
        }
        if self.config.username:
            kwargs["auth_provider"] = PlainTextAuthProvider(
                username=self.config.username, password=self.config.password or ""
            )
        if self.config.protocol_version is not None:
            kwargs["protocol_version"] = self.config.protocol_version

        try:
            self._cluster = Cluster(**kwargs)
            self._session = self._cluster.connect()
            self._session.row_factory = dict_factory

            if self.config.create_keyspace:
                self._session.execute(self.keyspace_cql())
            self._session.set_keyspace(self.config.keyspace)
        except NoHostAvailable as e:
            self._shutdown()
            raise StoreConnectionError(f"Failed to connect to Cassandra: {e}") from e
        except RequestValidationException as e:
            self._shutdown()
            raise QueryRejectedError(str(e), self.config.keyspace) from e

        self._closed = False
        logger.info(
            "Connected to Cassandra",
            extra={
                "contact_points": ",".join(self.config.contact_points),
                "keyspace": self.config.keyspace,
            },
        )

    def keyspace_cql(self) -> str:
        """DDL that creates the configured keyspace if it is missing."""
        return (
            f"CREATE KEYSPACE IF NOT EXISTS {self.config.keyspace} "
            f"WITH replication = {{'class': '{self.config.replication_strategy}', "
            f"'replication_factor': {self.config.replication_factor}}};"
        )

    def execute(self, statement: Executable) -> list[ResultRow]:
        """Execute a statement or DDL text.

        Raises:
            StoreConnectionError: If not connected or the cluster is unreachable
            QueryRejectedError: If Cassandra rejects the statement
            StoreError: For other request failures (timeouts, unavailable replicas)
        """
        if not self.is_connected:
            raise StoreConnectionError("Not connected to Cassandra")

        driver_statement, params = self._to_driver(statement)
        try:
            result = self._session.execute(driver_statement, params)
        except RequestValidationException as e:
            raise QueryRejectedError(str(e), statement) from e
        except (NoHostAvailable, OperationTimedOut) as e:
            raise StoreConnectionError(f"Cassandra unavailable: {e}") from e
        except RequestExecutionException as e:
            raise StoreError(f"Cassandra request failed: {e}") from e

        return list(result) if result is not None else []

    def close(self) -> None:
        """Shut down the session and its cluster."""
        self._shutdown()
        self._closed = True
        logger.info("Disconnected from Cassandra")

    def _shutdown(self) -> None:
        if self._session is not None:
            self._session.shutdown()
            self._session = None
        if self._cluster is not None:
            self._cluster.shutdown()
            self._cluster = None

    def _to_driver(self, statement: Executable) -> tuple[Any, Any]:
        if isinstance(statement, str):
            return SimpleStatement(statement), None

        if isinstance(statement, Batch):
            batch = BatchStatement(batch_type=BatchType.LOGGED)
            for inner in statement.statements:
                text, params = inner.to_cql()
                batch.add(SimpleStatement(text), params)
            return batch, None

        if isinstance(statement, Statement):
            text, params = statement.to_cql()
            if isinstance(statement, Select) and not statement.paged:
                return SimpleStatement(text, fetch_size=None), params
            return SimpleStatement(text), params

        raise QueryRejectedError(f"Unsupported statement: {statement!r}", statement)
