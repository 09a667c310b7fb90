"""Test helpers shared across suites."""

from datetime import datetime, timedelta, timezone

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from learngate.adapters.repository import run_migrations
from learngate.config.settings import get_settings

TEST_SECRET = "test-secret-key-with-enough-bytes-for-hs256"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def open_test_pool(max_size: int = 10) -> ConnectionPool:
    """
    Open a pool against ``DATABASE_URL`` with migrations applied.

    Skips the requesting tests when PostgreSQL is unreachable.
    """
    pool = ConnectionPool(
        conninfo=get_settings().database_url,
        min_size=1,
        max_size=max_size,
        open=True,
    )
    try:
        pool.wait(timeout=5)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    return pool


def truncate_users(pool: ConnectionPool) -> None:
    """Delete every user row."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM users")
        conn.commit()
