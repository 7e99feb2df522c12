"""
JWT signer adapter - Implements TokenSigner protocol with PyJWT.

Tokens carry the caller's claims plus ``iat`` and ``exp``; expiry is
enforced by PyJWT on decode.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from src.domain.exceptions import TokenSigningError

logger = logging.getLogger(__name__)


class JwtTokenSigner:
    """Implements TokenSigner protocol via PyJWT (HMAC by default)."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, claims: dict[str, Any], expires_in: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + expires_in}
        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except jwt.PyJWTError as e:
            raise TokenSigningError("Failed to sign session token") from e

    def verify(self, token: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected invalid session token: %s", e)
            return None
