"""
Shared fixtures for adversarial tests.

Memory-backed scenarios use the root fixtures. The ``pool`` fixture is for
PostgreSQL scenarios and skips them when the database is not reachable.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from support import open_test_pool, truncate_users


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    pool = open_test_pool()
    yield pool
    pool.close()


@pytest.fixture
def clean_pool(pool: ConnectionPool) -> ConnectionPool:
    """Pool with an empty users table."""
    truncate_users(pool)
    return pool
