"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Concurrency Design
------------------
Verification-state writes are single conditional UPDATE statements:

1. **claim_code_slot**: ``WHERE last_code_sent_at IS NOT DISTINCT FROM %s``.
   Two racing resends both read the same timestamp; the second UPDATE
   blocks on the row lock, re-evaluates its WHERE clause against the
   winner's row and matches nothing.

2. **mark_verified**: ``WHERE verification_code_hash = %s``. A code
   rotated by a concurrent resend cannot be confirmed with the old one.

3. **create_user**: ``ON CONFLICT (email) DO NOTHING``. The UNIQUE
   constraint makes duplicate registration atomic.

4. **claim_reset_slot** and **consume_reset_token** follow the same
   pattern on ``last_reset_requested_at`` and ``reset_token_hash``; the
   expiry check runs inside the consuming UPDATE.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path

from psycopg_pool import ConnectionPool

from learngate.domain.ports import UserRecord

logger = logging.getLogger(__name__)

_USER_COLUMNS = """
    id, email, name, password_hash, email_verified_at,
    verification_code_hash, last_code_sent_at, created_at,
    reset_token_hash, reset_token_expires_at, last_reset_requested_at
"""


def _row_to_user(row: tuple) -> UserRecord:
    return UserRecord(
        id=str(row[0]),
        email=row[1],
        name=row[2],
        password_hash=row[3],
        email_verified_at=row[4],
        verification_code_hash=row[5],
        last_code_sent_at=row[6],
        created_at=row[7],
        reset_token_hash=row[8],
        reset_token_expires_at=row[9],
        last_reset_requested_at=row[10],
    )


def _parse_id(user_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        return None


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create_user(self, email: str, name: str, password_hash: str) -> UserRecord | None:
        """
        Atomically create a user.

        Returns:
            The created record, or None if the email is already registered
        """
        sql = f"""
            INSERT INTO users (email, name, password_hash)
            VALUES (%s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_USER_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, name, password_hash))
            row = cursor.fetchone()
            conn.commit()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> UserRecord | None:
        parsed = _parse_id(user_id)
        if parsed is None:
            return None
        return self._find_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", parsed)

    def find_by_email(self, email: str) -> UserRecord | None:
        return self._find_one(f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s", email)

    def claim_code_slot(
        self,
        user_id: str,
        code_hash: str,
        sent_at: datetime,
        expected_last_sent_at: datetime | None,
    ) -> bool:
        """
        Compare-and-set the code digest on ``last_code_sent_at``.

        Returns:
            True if exactly one row was updated (slot claimed)
        """
        parsed = _parse_id(user_id)
        if parsed is None:
            return False

        sql = """
            UPDATE users
            SET verification_code_hash = %s,
                last_code_sent_at = %s
            WHERE id = %s
              AND email_verified_at IS NULL
              AND last_code_sent_at IS NOT DISTINCT FROM %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (code_hash, sent_at, parsed, expected_last_sent_at))
            conn.commit()
            return cursor.rowcount == 1

    def mark_verified(self, user_id: str, verified_at: datetime, expected_code_hash: str) -> bool:
        """
        Compare-and-set transition to VERIFIED on the code digest.

        Returns:
            True if exactly one row was updated
        """
        parsed = _parse_id(user_id)
        if parsed is None:
            return False

        sql = """
            UPDATE users
            SET verification_code_hash = NULL,
                email_verified_at = %s
            WHERE id = %s
              AND email_verified_at IS NULL
              AND verification_code_hash = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (verified_at, parsed, expected_code_hash))
            conn.commit()
            return cursor.rowcount == 1

    def claim_reset_slot(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        requested_at: datetime,
        expected_last_requested_at: datetime | None,
    ) -> bool:
        """
        Compare-and-set the reset token digest on ``last_reset_requested_at``.

        Returns:
            True if exactly one row was updated (slot claimed)
        """
        parsed = _parse_id(user_id)
        if parsed is None:
            return False

        sql = """
            UPDATE users
            SET reset_token_hash = %s,
                reset_token_expires_at = %s,
                last_reset_requested_at = %s
            WHERE id = %s
              AND last_reset_requested_at IS NOT DISTINCT FROM %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token_hash, expires_at, requested_at, parsed, expected_last_requested_at))
            conn.commit()
            return cursor.rowcount == 1

    def consume_reset_token(self, token_hash: str, password_hash: str, now: datetime) -> bool:
        """
        Swap the password and clear the token in one conditional UPDATE.

        Returns:
            True if an unexpired token matched
        """
        sql = """
            UPDATE users
            SET password_hash = %s,
                reset_token_hash = NULL,
                reset_token_expires_at = NULL
            WHERE reset_token_hash = %s
              AND reset_token_expires_at > %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, token_hash, now))
            conn.commit()
            return cursor.rowcount == 1

    def replace_password(self, user_id: str, password_hash: str, expected_password_hash: str) -> bool:
        parsed = _parse_id(user_id)
        if parsed is None:
            return False

        sql = """
            UPDATE users
            SET password_hash = %s
            WHERE id = %s
              AND password_hash = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, parsed, expected_password_hash))
            conn.commit()
            return cursor.rowcount == 1

    def _find_one(self, sql: str, param: object) -> UserRecord | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (param,))
            row = cursor.fetchone()
        return _row_to_user(row) if row is not None else None


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/learngate/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parents[4] / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
