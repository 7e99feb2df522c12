"""
Redis cache adapter - Implements KeyValueCache protocol.

Backs one-time codes, verification credentials, availability verdicts and
session mirrors. Every key is written with an explicit TTL via SETEX.
redis-py errors (connection refused, socket timeouts) are translated into
CacheUnavailable so they surface as transient failures in the domain.
"""

import logging

import redis
from redis.exceptions import RedisError

from src.domain.exceptions import CacheUnavailable

logger = logging.getLogger(__name__)


class RedisCache:
    """
    Implements KeyValueCache protocol via redis-py.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: redis.Redis) -> None:
        """
        Initialize the cache with a client.

        Args:
            client: redis-py client created with decode_responses=True
        """
        self._client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 5.0) -> "RedisCache":
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
            health_check_interval=30,
        )
        return cls(client)

    def ping(self) -> None:
        """
        Check connectivity.

        Raises:
            CacheUnavailable: If the server cannot be reached
        """
        try:
            self._client.ping()
        except RedisError as e:
            raise CacheUnavailable("Redis ping failed") from e

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(key)
        except RedisError as e:
            logger.error("Redis GET %s failed: %s", key, e)
            raise CacheUnavailable("Cache read failed") from e

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client.setex(key, ttl_seconds, value)
        except RedisError as e:
            logger.error("Redis SETEX %s failed: %s", key, e)
            raise CacheUnavailable("Cache write failed") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except RedisError as e:
            logger.error("Redis DEL %s failed: %s", key, e)
            raise CacheUnavailable("Cache delete failed") from e

    def close(self) -> None:
        self._client.close()
