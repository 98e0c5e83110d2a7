"""
E2E test fixtures for cqlgraph.

These tests require a reachable Cassandra (or ScyllaDB) node, e.g.:

    docker run -d -p 9042:9042 cassandra:4.1
    CQLGRAPH_E2E_TESTS=1 pytest tests/e2e
"""

import os
import socket
import time
import uuid

import pytest

from backend.cqlgraph.config import BackendConfig, CassandraConfig

# Skip E2E tests if not in E2E mode
E2E_ENABLED = os.environ.get("CQLGRAPH_E2E_TESTS", "0") == "1"


def wait_for_service(host: str, port: int, timeout: int = 60) -> bool:
    """Wait for a service to become available."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1):
                return True
        except OSError:
            time.sleep(1)
    return False


@pytest.fixture(scope="session")
def cassandra_config() -> CassandraConfig:
    """Cluster settings from the environment with a throwaway keyspace."""
    if not E2E_ENABLED:
        pytest.skip("E2E tests disabled. Set CQLGRAPH_E2E_TESTS=1 to enable.")
    base = CassandraConfig.from_env()
    assert wait_for_service(base.contact_points[0], base.port), "Cassandra not ready"
    return CassandraConfig(
        contact_points=base.contact_points,
        port=base.port,
        keyspace=f"cqlgraph_e2e_{uuid.uuid4().hex[:8]}",
        username=base.username,
        password=base.password,
        protocol_version=base.protocol_version,
    )


@pytest.fixture
def session(cassandra_config):
    """Connected CassandraSession; the test keyspace is dropped afterwards."""
    from backend.cqlgraph.store import CassandraSession

    session = CassandraSession(cassandra_config)
    session.connect()
    yield session
    if not session.is_closed:
        session.execute(f"DROP KEYSPACE IF EXISTS {cassandra_config.keyspace};")
        session.close()


@pytest.fixture
def backend_config(cassandra_config) -> BackendConfig:
    return BackendConfig(cassandra=cassandra_config)
