"""
Shared fixtures for integration tests.

Requires PostgreSQL and Redis to be running (via docker-compose). Tests
are skipped when either server cannot be reached.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.cache.redis_cache import RedisCache
from src.adapters.repository.postgres import PostgresUserRepository, run_migrations
from src.config.settings import get_settings
from src.domain.exceptions import CacheUnavailable


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    try:
        pool.open(wait=True, timeout=5)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(scope="module")
def redis_cache() -> Generator[RedisCache, None, None]:
    """Create a Redis-backed cache for integration tests."""
    settings = get_settings()
    cache = RedisCache.from_url(settings.redis_url, socket_timeout=2.0)
    try:
        cache.ping()
    except CacheUnavailable:
        cache.close()
        pytest.skip("Redis is not reachable")
    yield cache
    cache.close()


@pytest.fixture
def repository(pool: ConnectionPool) -> PostgresUserRepository:
    """Create repository instance for each test."""
    return PostgresUserRepository(pool)


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean users table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM users")
        conn.commit()
    yield


@pytest.fixture
def clean_cache(redis_cache: RedisCache) -> Generator[None, None, None]:
    """Flush the cache database before each test."""
    redis_cache._client.flushdb()
    yield
