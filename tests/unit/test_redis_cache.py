"""Unit tests for the Redis permission cache (client mocked)."""

import json
from unittest.mock import AsyncMock, MagicMock

import redis.asyncio as redis

from hive_admin.infrastructure.cache.redis_cache import CacheService


def _client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.unlink = AsyncMock(side_effect=lambda *keys: len(keys))
    client.aclose = AsyncMock()
    return client


async def test_get_decodes_json() -> None:
    client = _client()
    client.get.return_value = json.dumps(["roles.view"])
    cache = CacheService(redis_client=client)
    assert cache.is_available()
    assert await cache.get("permission:t1:u1") == ["roles.view"]


async def test_get_error_is_a_miss() -> None:
    client = _client()
    client.get.side_effect = redis.ConnectionError("down")
    cache = CacheService(redis_client=client)
    assert await cache.get("k") is None


async def test_set_uses_ttl() -> None:
    client = _client()
    cache = CacheService(redis_client=client)
    assert await cache.set("k", ["a"], ttl=42)
    client.setex.assert_awaited_once_with("k", 42, json.dumps(["a"]))


async def test_delete_pattern_unlinks_in_chunks() -> None:
    client = _client()
    keys = [f"permission:t:{i}" for i in range(1203)]

    async def scan_iter(match):
        for key in keys:
            yield key

    client.scan_iter = scan_iter
    cache = CacheService(redis_client=client)
    assert await cache.delete_pattern("permission:*") == 1203
    assert client.unlink.await_count == 3


async def test_disconnect_marks_unavailable() -> None:
    client = _client()
    cache = CacheService(redis_client=client)
    await cache.disconnect()
    client.aclose.assert_awaited_once()
    assert not cache.is_available()
    assert await cache.get("k") is None
