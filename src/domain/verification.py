"""
Email ownership handshake - one-time codes and verification credentials.

Both managers keep their state in the cache tier under per-email keys with
upsert semantics: issuing again replaces the previous value, and the
previous value stops being accepted immediately (last writer wins).

    otp:{email}             6-digit code, 10 minutes, deleted on first match
    email_verified:{email}  opaque token, 60 minutes, deleted on registration

Cache failures propagate as CacheUnavailable; the registration service
translates them into TRANSIENT outcomes.
"""

import secrets
from dataclasses import dataclass

from .ports import CodeCheck, KeyValueCache

CODE_MIN = 100000
CODE_MAX = 999999

CODE_NOT_FOUND = "Code expired or not found"
CODE_INVALID = "Invalid code"
CODE_VERIFIED = "Code verified successfully"


@dataclass
class OneTimeCodeManager:
    """Issues and single-use-verifies numeric codes per email."""

    cache: KeyValueCache
    ttl_seconds: int = 600

    @staticmethod
    def cache_key(email: str) -> str:
        return f"otp:{email}"

    def issue(self, email: str) -> str:
        """
        Generate a code uniform over 100000-999999 and store it.

        Any live code for the email is replaced. Delivery is the caller's job.
        """
        code = str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
        self.cache.set(self.cache_key(email), code, self.ttl_seconds)
        return code

    def verify(self, email: str, candidate: str) -> CodeCheck:
        key = self.cache_key(email)
        stored = self.cache.get(key)

        if stored is None:
            return CodeCheck(valid=False, message=CODE_NOT_FOUND)

        if not secrets.compare_digest(stored.encode(), candidate.encode()):
            return CodeCheck(valid=False, message=CODE_INVALID)

        # Single use
        self.cache.delete(key)
        return CodeCheck(valid=True, message=CODE_VERIFIED)

    def revoke(self, email: str) -> None:
        """Drop the live code, e.g. when delivery failed."""
        self.cache.delete(self.cache_key(email))


@dataclass
class VerificationCredentialManager:
    """
    Short-lived proof that an email passed code verification.

    Only presence is checked at registration; the token value is returned
    to the client but never compared.
    """

    cache: KeyValueCache
    ttl_seconds: int = 3600

    @staticmethod
    def cache_key(email: str) -> str:
        return f"email_verified:{email}"

    def issue(self, email: str) -> str:
        token = secrets.token_urlsafe(32)
        self.cache.set(self.cache_key(email), token, self.ttl_seconds)
        return token

    def is_live(self, email: str) -> bool:
        return self.cache.get(self.cache_key(email)) is not None

    def consume(self, email: str) -> None:
        self.cache.delete(self.cache_key(email))
