"""
cqlgraph Test Suite.

This package contains:
- unit/: Unit tests (no external dependencies, driver mocked)
- integration/: Integration tests (graph tables over InMemorySession)
- e2e/: End-to-end tests (live Cassandra, CQLGRAPH_E2E_TESTS=1)
"""
