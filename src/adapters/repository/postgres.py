"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
user store port using psycopg3 with raw SQL.

Uniqueness Design:
------------------
The ``users`` table carries UNIQUE constraints on ``email`` and
``username`` (both stored lowercased and trimmed by the domain). These
constraints are the only strict serialization point for registrations:
the domain's availability and uniqueness lookups run first to reject the
common case cheaply, but two concurrent inserts for the same identity can
both get past them. ``insert_user`` catches ``UniqueViolation`` and
returns False so the losing request surfaces as a conflict, not a
generic failure.

Every other ``psycopg.Error`` (including ``psycopg_pool.PoolTimeout``) is
translated into ``StoreUnavailable``.
"""

import logging
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg.errors import UniqueViolation
from psycopg_pool import ConnectionPool

from src.domain.exceptions import StoreUnavailable
from src.domain.ports import User

logger = logging.getLogger(__name__)

_USER_COLUMNS = (
    "id, email, username, password_hash, created_at, updated_at, "
    "is_active, email_verified, last_login"
)


def _row_to_user(row: tuple) -> User:
    return User(
        id=str(row[0]),
        email=row[1],
        username=row[2],
        password_hash=row[3],
        created_at=row[4],
        updated_at=row[5],
        is_active=row[6],
        email_verified=row[7],
        last_login=row[8],
    )


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def _fetch_one(self, sql: str, params: tuple) -> User | None:
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
        except psycopg.Error as e:
            logger.error("User lookup failed: %s", e)
            raise StoreUnavailable("User lookup failed") from e
        return _row_to_user(row) if row is not None else None

    def find_by_username(self, username: str) -> User | None:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE username = %s"
        return self._fetch_one(sql, (username,))

    def find_by_email(self, email: str) -> User | None:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s"
        return self._fetch_one(sql, (email,))

    def find_by_email_or_username(self, email: str, username: str) -> User | None:
        sql = f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s OR username = %s LIMIT 1"
        return self._fetch_one(sql, (email, username))

    def insert_user(self, user: User) -> bool:
        """
        Insert a user row.

        The UNIQUE constraints on email and username are the final race
        closer; a violation is reported as False rather than raised.

        Args:
            user: Fully built user record with normalized email/username

        Returns:
            True if the row was inserted, False on a unique violation
        """
        sql = f"""
            INSERT INTO users ({_USER_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        params = (
            user.id,
            user.email,
            user.username,
            user.password_hash,
            user.created_at,
            user.updated_at,
            user.is_active,
            user.email_verified,
            user.last_login,
        )

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                conn.commit()
        except UniqueViolation:
            logger.info("Unique constraint rejected user %s", user.username)
            return False
        except psycopg.Error as e:
            logger.error("User insert failed: %s", e)
            raise StoreUnavailable("User insert failed") from e
        return True

    def list_usernames(self) -> list[str]:
        """Full-table username projection used to build the membership index."""
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute("SELECT username FROM users")
                return [row[0] for row in cursor.fetchall()]
        except psycopg.Error as e:
            logger.error("Username projection failed: %s", e)
            raise StoreUnavailable("Username projection failed") from e

    def record_login(self, user_id: str, at: datetime) -> None:
        sql = "UPDATE users SET last_login = %s, updated_at = %s WHERE id = %s"
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (at, at, user_id))
                conn.commit()
        except psycopg.Error as e:
            logger.error("Login update failed: %s", e)
            raise StoreUnavailable("Login update failed") from e


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
