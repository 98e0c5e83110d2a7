"""
Configuration management for the cqlgraph backend.

All configuration is done via environment variables. This module provides
typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Secrets are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep from_env() and the dataclass defaults in sync
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# A vertex/edge is stored as one physical row per property; a logical limit
# is multiplied by this factor to approximate the physical row limit.
DEFAULT_FAN_OUT_FACTOR = 100


@dataclass(frozen=True)
class CassandraConfig:
    """Cassandra cluster connection configuration.

    Attributes:
        contact_points: Cluster hosts used for the initial connection
        port: Native protocol port
        keyspace: Keyspace holding the graph tables
        username: Username for PlainTextAuthProvider (optional)
        password: Password for PlainTextAuthProvider (optional)
        protocol_version: Native protocol version (None lets the driver negotiate)
        replication_strategy: Replication class used when creating the keyspace
        replication_factor: Replication factor used when creating the keyspace
        create_keyspace: Whether connect() creates the keyspace if missing
    """

    contact_points: tuple[str, ...] = ("127.0.0.1",)
    port: int = 9042
    keyspace: str = "hugegraph"
    username: str | None = None
    password: str | None = None
    protocol_version: int | None = None
    replication_strategy: str = "SimpleStrategy"
    replication_factor: int = 1
    create_keyspace: bool = True

    @classmethod
    def from_env(cls) -> CassandraConfig:
        """Load configuration from environment variables."""
        hosts = os.getenv("CASSANDRA_HOSTS", "127.0.0.1")
        protocol = os.getenv("CASSANDRA_PROTOCOL_VERSION")
        return cls(
            contact_points=tuple(h.strip() for h in hosts.split(",") if h.strip()),
            port=int(os.getenv("CASSANDRA_PORT", "9042")),
            keyspace=os.getenv("CASSANDRA_KEYSPACE", "hugegraph"),
            username=os.getenv("CASSANDRA_USERNAME"),
            password=os.getenv("CASSANDRA_PASSWORD"),
            protocol_version=int(protocol) if protocol else None,
            replication_strategy=os.getenv("CASSANDRA_REPLICATION_STRATEGY", "SimpleStrategy"),
            replication_factor=int(os.getenv("CASSANDRA_REPLICATION_FACTOR", "1")),
            create_keyspace=os.getenv("CASSANDRA_CREATE_KEYSPACE", "true").lower() == "true",
        )


@dataclass(frozen=True)
class QueryConfig:
    """Query planning and execution configuration.

    Attributes:
        fan_out_factor: Multiplier from logical limit to physical row limit
        max_concurrency: Maximum selects in flight for CassandraTable.aquery()
    """

    fan_out_factor: int = DEFAULT_FAN_OUT_FACTOR
    max_concurrency: int = 4

    @classmethod
    def from_env(cls) -> QueryConfig:
        """Load configuration from environment variables."""
        return cls(
            fan_out_factor=int(os.getenv("QUERY_FAN_OUT_FACTOR", str(DEFAULT_FAN_OUT_FACTOR))),
            max_concurrency=int(os.getenv("QUERY_MAX_CONCURRENCY", "4")),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass
class BackendConfig:
    """Complete backend configuration.

    Attributes:
        cassandra: Cluster connection configuration
        query: Query planning configuration
        observability: Logging configuration
    """

    cassandra: CassandraConfig = field(default_factory=CassandraConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> BackendConfig:
        """Load complete configuration from environment variables.

        Returns:
            BackendConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            cassandra=CassandraConfig.from_env(),
            query=QueryConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.cassandra.contact_points:
            raise ValueError("CASSANDRA_HOSTS must name at least one host")
        if not self.cassandra.keyspace:
            raise ValueError("CASSANDRA_KEYSPACE is required")
        if self.cassandra.replication_factor < 1:
            raise ValueError("CASSANDRA_REPLICATION_FACTOR must be >= 1")
        if self.query.fan_out_factor < 1:
            raise ValueError("QUERY_FAN_OUT_FACTOR must be >= 1")
        if self.query.max_concurrency < 1:
            raise ValueError("QUERY_MAX_CONCURRENCY must be >= 1")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )
        if self.cassandra.username and not self.cassandra.password:
            logger.warning("CASSANDRA_USERNAME is set without CASSANDRA_PASSWORD")

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Backend configuration loaded",
            extra={
                "cassandra_hosts": ",".join(self.cassandra.contact_points),
                "cassandra_port": self.cassandra.port,
                "keyspace": self.cassandra.keyspace,
                "auth_enabled": self.cassandra.username is not None,
                "fan_out_factor": self.query.fan_out_factor,
                "max_concurrency": self.query.max_concurrency,
                "log_level": self.observability.log_level,
            },
        )
