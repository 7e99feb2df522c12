"""Cache adapters - TTL key-value store implementations."""

from .redis_cache import RedisCache

__all__ = ["RedisCache"]
