"""Redis-backed cache for resolved permission sets.

Implements ICacheService. Every operation degrades to a miss/no-op when
Redis is unreachable; authorization then falls back to the database.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis

from hive_admin.core.config import Settings, get_settings
from hive_admin.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_UNLINK_CHUNK = 500


class CacheService:
    """Async Redis cache with TTL. Call connect() at startup and disconnect() at shutdown."""

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            redis_client: Pre-built client (tests, DI); marks the cache connected.
            settings: Connection settings; defaults to get_settings().
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Open the Redis connection; on failure the cache stays disabled."""
        if self.redis is not None:
            return
        password = self.settings.redis_password
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Permission cache disabled.", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Redis cache connected: %s:%s", self.settings.redis_host, self.settings.redis_port
        )

    async def disconnect(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            logger.info("Redis cache disconnected")
        self.redis = None
        self._connected = False

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def get(self, key: str) -> Any | None:
        """Return the JSON-decoded value for key, or None on miss or error."""
        if not self.is_available():
            return None
        try:
            value = await self.redis.get(key)
        except redis.RedisError:
            logger.warning("Cache get failed for %s", key, exc_info=True)
            return None
        if value is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(value)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        if not self.is_available():
            return False
        try:
            await self.redis.setex(key, ttl, json.dumps(value))
        except redis.RedisError:
            logger.warning("Cache set failed for %s", key, exc_info=True)
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        return True

    async def delete(self, key: str) -> bool:
        if not self.is_available():
            return False
        try:
            await self.redis.delete(key)
        except redis.RedisError:
            logger.warning("Cache delete failed for %s", key, exc_info=True)
            return False
        return True

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern with SCAN and batched UNLINK.

        Args:
            pattern: Redis match pattern (e.g. permission:*:user-1).

        Returns:
            Number of keys deleted.
        """
        if not self.is_available():
            return 0
        deleted = 0
        try:
            chunk: list[str] = []
            async for key in self.redis.scan_iter(match=pattern):
                chunk.append(key)
                if len(chunk) >= _UNLINK_CHUNK:
                    deleted += await self.redis.unlink(*chunk)
                    chunk = []
            if chunk:
                deleted += await self.redis.unlink(*chunk)
        except redis.RedisError:
            logger.warning("Cache delete_pattern failed for %s", pattern, exc_info=True)
            return deleted
        if deleted:
            logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
        return deleted
