"""Cache: Redis-backed permission cache (key format lives in authorization_service)."""

from hive_admin.infrastructure.cache.redis_cache import CacheService

__all__ = ["CacheService"]
