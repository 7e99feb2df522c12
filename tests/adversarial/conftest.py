"""
Shared fixtures for adversarial tests.

Provides a registration service backed by a real PostgreSQL store (for
race tests) and by in-memory fakes (for timing tests).
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import PostgresUserRepository, run_migrations
from src.adapters.signing.jwt_signer import JwtTokenSigner
from src.config.settings import get_settings
from src.domain.membership import MembershipIndex
from src.domain.registration import RegistrationService
from src.domain.sessions import SessionIssuer
from src.domain.usernames import UsernameResolver
from src.domain.verification import OneTimeCodeManager, VerificationCredentialManager


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=20,
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


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean users table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM users")
        conn.commit()
    yield


def build_service(repository, cache, bcrypt_cost: int = 4) -> RegistrationService:
    """Wire a RegistrationService around the given store and cache."""
    resolver = UsernameResolver(
        repository=repository,
        cache=cache,
        index=MembershipIndex(expected_items=1000, false_positive_rate=0.01),
    )
    return RegistrationService(
        repository=repository,
        email_sender=_NullSender(),
        resolver=resolver,
        codes=OneTimeCodeManager(cache),
        credentials=VerificationCredentialManager(cache),
        sessions=SessionIssuer(JwtTokenSigner("adversarial-secret-32-bytes-long!!"), cache),
        bcrypt_cost=bcrypt_cost,
    )


class _NullSender:
    def send(self, to: str, subject: str, body: str) -> None:
        pass


@pytest.fixture
def pg_service(pool: ConnectionPool, clean_database, cache) -> RegistrationService:
    """Registration service over the real store and an in-memory cache."""
    return build_service(PostgresUserRepository(pool), cache)


@pytest.fixture
def service_factory():
    """Expose build_service to test modules."""
    return build_service
