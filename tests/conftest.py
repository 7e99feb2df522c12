"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory implementations of the cache and user store ports
- A recording email sender
- A fully wired RegistrationService with a cheap bcrypt cost

The in-memory cache runs on a manual clock so TTL behaviour can be tested
by calling ``advance()`` instead of sleeping.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

import bcrypt
import pytest

from src.adapters.signing.jwt_signer import JwtTokenSigner
from src.domain.exceptions import CacheUnavailable, EmailDeliveryFailed, StoreUnavailable
from src.domain.membership import MembershipIndex
from src.domain.ports import User
from src.domain.registration import RegistrationService
from src.domain.sessions import SessionIssuer
from src.domain.usernames import UsernameResolver
from src.domain.verification import OneTimeCodeManager, VerificationCredentialManager

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"


class InMemoryCache:
    """KeyValueCache with expiring entries and a manual clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.fail = False
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def ttl(self, key: str) -> float | None:
        entry = self._data.get(key)
        return None if entry is None else entry[1] - self.now

    def get(self, key: str) -> str | None:
        if self.fail:
            raise CacheUnavailable("cache down")
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self.now >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self.fail:
            raise CacheUnavailable("cache down")
        with self._lock:
            self._data[key] = (value, self.now + ttl_seconds)

    def delete(self, key: str) -> None:
        if self.fail:
            raise CacheUnavailable("cache down")
        with self._lock:
            self._data.pop(key, None)


class InMemoryUserRepository:
    """UserRepository enforcing unique email/username under a lock."""

    def __init__(self) -> None:
        self.fail = False
        self.username_lookups = 0
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    def _check(self) -> None:
        if self.fail:
            raise StoreUnavailable("store down")

    def add(self, user: User) -> None:
        self._users[user.id] = user

    def find_by_username(self, username: str) -> User | None:
        self._check()
        self.username_lookups += 1
        return next((u for u in self._users.values() if u.username == username), None)

    def find_by_email(self, email: str) -> User | None:
        self._check()
        return next((u for u in self._users.values() if u.email == email), None)

    def find_by_email_or_username(self, email: str, username: str) -> User | None:
        self._check()
        return next(
            (u for u in self._users.values() if u.email == email or u.username == username),
            None,
        )

    def insert_user(self, user: User) -> bool:
        self._check()
        with self._lock:
            for existing in self._users.values():
                if existing.email == user.email or existing.username == user.username:
                    return False
            self._users[user.id] = replace(user)
            return True

    def list_usernames(self) -> list[str]:
        self._check()
        return [u.username for u in self._users.values()]

    def record_login(self, user_id: str, at: datetime) -> None:
        self._check()
        user = self._users[user_id]
        user.last_login = at
        user.updated_at = at

    def all(self) -> list[User]:
        return list(self._users.values())


class RecordingEmailSender:
    """EmailSender that keeps every message for inspection."""

    def __init__(self) -> None:
        self.fail = False
        self.messages: list[tuple[str, str, str]] = []

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise EmailDeliveryFailed("smtp down")
        self.messages.append((to, subject, body))

    def last_code(self) -> str:
        body = self.messages[-1][2]
        return next(word for word in body.replace(".", " ").split() if word.isdigit() and len(word) == 6)


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def signer() -> JwtTokenSigner:
    return JwtTokenSigner(TEST_SECRET)


@pytest.fixture
def index() -> MembershipIndex:
    return MembershipIndex(expected_items=1000, false_positive_rate=0.01)


@pytest.fixture
def resolver(
    repository: InMemoryUserRepository, cache: InMemoryCache, index: MembershipIndex
) -> UsernameResolver:
    return UsernameResolver(repository=repository, cache=cache, index=index)


@pytest.fixture
def service(
    repository: InMemoryUserRepository,
    cache: InMemoryCache,
    email_sender: RecordingEmailSender,
    resolver: UsernameResolver,
    signer: JwtTokenSigner,
) -> RegistrationService:
    return RegistrationService(
        repository=repository,
        email_sender=email_sender,
        resolver=resolver,
        codes=OneTimeCodeManager(cache=cache),
        credentials=VerificationCredentialManager(cache=cache),
        sessions=SessionIssuer(signer=signer, cache=cache),
        bcrypt_cost=4,
    )


@pytest.fixture
def make_user():
    """Factory for stored users with a real (cheap) bcrypt hash."""

    def _make(
        username: str = "existing1",
        email: str = "existing@example.com",
        password: str = "password123",
        is_active: bool = True,
    ) -> User:
        now = datetime.now(timezone.utc)
        return User(
            id=str(uuid.uuid4()),
            email=email,
            username=username,
            password_hash=bcrypt.hashpw(password.encode(), bcrypt.gensalt(4)).decode(),
            created_at=now,
            updated_at=now,
            is_active=is_active,
            email_verified=True,
        )

    return _make
