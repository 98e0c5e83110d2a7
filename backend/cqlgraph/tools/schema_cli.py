"""
Schema CLI tool for cqlgraph.

This tool manages the graph tables of a Cassandra keyspace:
- ddl: Print the DDL of every table (no cluster needed)
- init: Create the keyspace (if configured), tables and indexes
- clear: Drop every table

Usage:
    cqlgraph-schema ddl
    cqlgraph-schema init
    cqlgraph-schema clear --yes

Connection settings come from the environment (CASSANDRA_HOSTS,
CASSANDRA_KEYSPACE, ...), see config.py.

Invariants:
    - ddl never connects to a cluster
    - Failures exit with a non-zero code and a one-line message on stderr
    - clear refuses to run without --yes

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep ddl output stable; deployment scripts may diff it
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

import json_log_formatter

from ..config import BackendConfig
from ..errors import BackendError
from ..graph_store import GraphStore
from ..store import CassandraSession, InMemorySession, StoreError

logger = logging.getLogger(__name__)


def setup_logging(config: BackendConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Backend configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("cassandra").setLevel(logging.WARNING)


class SchemaCLI:
    """CLI tool for table management.

    Example:
        >>> cli = SchemaCLI(BackendConfig())
        >>> print("\\n".join(cli.ddl()))
    """

    def __init__(self, config: BackendConfig) -> None:
        self.config = config

    def ddl(self) -> list[str]:
        """DDL statements that init would run, in execution order."""
        session = InMemorySession()
        GraphStore(session, config=self.config).init()
        return [str(statement) for statement in session.executed]

    def init(self) -> None:
        with self._connect() as store:
            store.init()

    def clear(self) -> None:
        with self._connect() as store:
            store.clear()

    def _connect(self) -> _ConnectedStore:
        session = CassandraSession(self.config.cassandra)
        session.connect()
        return _ConnectedStore(GraphStore(session, config=self.config))


class _ConnectedStore:
    """Closes the store's session when the block exits."""

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    def __enter__(self) -> GraphStore:
        return self.store

    def __exit__(self, *exc_info) -> None:
        self.store.session.close()


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for the schema tool."""
    parser = argparse.ArgumentParser(description="cqlgraph table management tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ddl", help="Print the DDL of every table")
    subparsers.add_parser("init", help="Create tables and indexes")
    clear_parser = subparsers.add_parser("clear", help="Drop every table")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm dropping all data")

    args = parser.parse_args(argv)

    try:
        config = BackendConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config)
    cli = SchemaCLI(config)

    try:
        if args.command == "ddl":
            for statement in cli.ddl():
                print(statement)

        elif args.command == "init":
            config.log_config()
            cli.init()
            print(f"Tables created in keyspace {config.cassandra.keyspace}")

        elif args.command == "clear":
            if not args.yes:
                print("Refusing to drop tables without --yes", file=sys.stderr)
                return 1
            config.log_config()
            cli.clear()
            print(f"Tables dropped from keyspace {config.cassandra.keyspace}")

    except (BackendError, StoreError) as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
