"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, plus the value types passed across them. Adapters
implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """
    Failure taxonomy carried by every unsuccessful Outcome.

    - VALIDATION: malformed input, fixable by resubmitting
    - CONFLICT: email or username already exists
    - PRECONDITION: a handshake step is missing or expired
    - UNAUTHORIZED: login credentials rejected
    - TRANSIENT: store, cache, signer or mail unavailable; safe to retry
    """

    VALIDATION = "validation"
    CONFLICT = "conflict"
    PRECONDITION = "precondition"
    UNAUTHORIZED = "unauthorized"
    TRANSIENT = "transient"


class AvailabilityState(str, Enum):
    """Values stored in availability cache entries."""

    TAKEN = "taken"
    AVAILABLE = "available"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a produced operation.

    Successful outcomes carry a value; failed outcomes carry an ErrorKind,
    a single message and optionally itemized errors.
    """

    ok: bool
    value: T | None = None
    kind: ErrorKind | None = None
    message: str = ""
    errors: tuple[str, ...] = ()

    @classmethod
    def success(cls, value: T, message: str = "") -> "Outcome[T]":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(
        cls, kind: ErrorKind, message: str, errors: list[str] | tuple[str, ...] = ()
    ) -> "Outcome[T]":
        return cls(ok=False, kind=kind, message=message, errors=tuple(errors))


@dataclass(frozen=True)
class Availability:
    """Verdict returned by the username resolver."""

    username: str
    available: bool
    reason: str
    error_kind: ErrorKind | None = None


@dataclass(frozen=True)
class CodeCheck:
    """Result of a one-time code verification."""

    valid: bool
    message: str


@dataclass(frozen=True)
class SessionGrant:
    """Signed session credential handed back to the client."""

    token: str
    expires_in_seconds: int


@dataclass
class User:
    """Account record as held by the authoritative store."""

    id: str
    email: str
    username: str
    password_hash: str
    created_at: datetime
    updated_at: datetime
    is_active: bool = True
    email_verified: bool = False
    last_login: datetime | None = None

    def to_public_dict(self) -> dict[str, Any]:
        """Serializable projection without the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "is_active": self.is_active,
            "email_verified": self.email_verified,
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }


@dataclass(frozen=True)
class AuthResult:
    """Payload of a successful registration or login."""

    user: dict[str, Any]
    token: str
    expires_in_seconds: int


@dataclass(frozen=True)
class CodeIssued:
    email: str
    expires_in_seconds: int


@dataclass(frozen=True)
class EmailVerified:
    email: str
    verification_token: str


class UserRepository(Protocol):
    """Port interface for the authoritative user store."""

    def find_by_username(self, username: str) -> User | None:
        """Exact match on the normalized username."""
        ...

    def find_by_email(self, email: str) -> User | None:
        """Exact match on the normalized email."""
        ...

    def find_by_email_or_username(self, email: str, username: str) -> User | None:
        """First user matching either the email or the username."""
        ...

    def insert_user(self, user: User) -> bool:
        """
        Insert a new user.

        Returns:
            True if inserted, False if a unique constraint (email or
            username) rejected the row
        """
        ...

    def list_usernames(self) -> list[str]:
        """Projection of every stored username, for index rebuilds."""
        ...

    def record_login(self, user_id: str, at: datetime) -> None:
        """Set last_login and updated_at for the user."""
        ...


class KeyValueCache(Protocol):
    """Port interface for the cache/TTL store."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Upsert: the previous value for key, if any, is replaced."""
        ...

    def delete(self, key: str) -> None:
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Deliver a message.

        Raises:
            EmailDeliveryFailed: If the transport did not accept the message
        """
        ...


class TokenSigner(Protocol):
    """Port interface for signed, self-expiring credentials."""

    def sign(self, claims: dict[str, Any], expires_in: timedelta) -> str:
        ...

    def verify(self, token: str) -> dict[str, Any] | None:
        """Return the claims if the signature and expiry are valid, else None."""
        ...
