"""
Integration tests for RedisCache.

Tests the cache adapter against a real Redis server.
"""

import pytest

from src.adapters.cache.redis_cache import RedisCache

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("clean_cache")]


class TestRedisCache:
    def test_set_then_get(self, redis_cache: RedisCache) -> None:
        redis_cache.set("otp:user@example.com", "123456", 600)
        assert redis_cache.get("otp:user@example.com") == "123456"

    def test_missing_key_returns_none(self, redis_cache: RedisCache) -> None:
        assert redis_cache.get("username:nobody12") is None

    def test_set_applies_ttl(self, redis_cache: RedisCache) -> None:
        redis_cache.set("username:newuser1", "available", 60)
        ttl = redis_cache._client.ttl("username:newuser1")
        assert 0 < ttl <= 60

    def test_overwrite_replaces_value_and_ttl(self, redis_cache: RedisCache) -> None:
        redis_cache.set("username:newuser1", "available", 60)
        redis_cache.set("username:newuser1", "taken", 300)

        assert redis_cache.get("username:newuser1") == "taken"
        assert redis_cache._client.ttl("username:newuser1") > 60

    def test_delete(self, redis_cache: RedisCache) -> None:
        redis_cache.set("session:abc", "token", 60)
        redis_cache.delete("session:abc")
        assert redis_cache.get("session:abc") is None

    def test_delete_missing_is_noop(self, redis_cache: RedisCache) -> None:
        redis_cache.delete("session:missing")

