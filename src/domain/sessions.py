"""
Session issuer - signed credentials with a mirrored server-side record.

The signed token is self-expiring. The mirror at ``session:{user_id}``
carries the same TTL and exists so a session can be revoked before the
token's own expiry. One mirror per user: issuing again overwrites it.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from .exceptions import CacheUnavailable
from .ports import KeyValueCache, SessionGrant, TokenSigner, User

logger = logging.getLogger(__name__)


@dataclass
class SessionIssuer:
    """Mints session tokens and maintains their revocation mirror."""

    signer: TokenSigner
    cache: KeyValueCache
    ttl_seconds: int = 60 * 60 * 24 * 7

    @staticmethod
    def cache_key(user_id: str) -> str:
        return f"session:{user_id}"

    def issue(self, user: User) -> SessionGrant:
        """
        Sign {userId, email, username} and mirror the token.

        Raises:
            TokenSigningError: If the signer fails; nothing is mirrored
        """
        claims = {"userId": user.id, "email": user.email, "username": user.username}
        token = self.signer.sign(claims, timedelta(seconds=self.ttl_seconds))

        try:
            self.cache.set(self.cache_key(user.id), token, self.ttl_seconds)
        except CacheUnavailable:
            # Token stays valid; only server-side revocation is lost
            logger.warning("Session mirror not recorded for user %s", user.id, exc_info=True)

        return SessionGrant(token=token, expires_in_seconds=self.ttl_seconds)

    def authenticate(self, token: str) -> dict[str, Any] | None:
        """
        Return the token's claims if it is validly signed and still mirrored.

        Raises:
            CacheUnavailable: If the mirror cannot be read
        """
        claims = self.signer.verify(token)
        if claims is None or "userId" not in claims:
            return None
        if self.cache.get(self.cache_key(claims["userId"])) != token:
            return None
        return claims

    def revoke(self, user_id: str) -> None:
        self.cache.delete(self.cache_key(user_id))
