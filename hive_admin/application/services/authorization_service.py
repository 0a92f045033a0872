"""Authorization service: permission checks with optional caching (IPermissionResolver + cache)."""

from __future__ import annotations

from hive_admin.application.interfaces.services import ICacheService, IPermissionResolver
from hive_admin.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_PERMISSION, CENTRAL_SCOPE_KEY
from hive_admin.domain.exceptions import AuthorizationException
from hive_admin.domain.policy import has_any


def permission_cache_key(user_id: str, tenant_id: str | None) -> str:
    """Cache key for a user's permission set in a scope."""
    scope = tenant_id or CENTRAL_SCOPE_KEY
    return CACHE_KEY_SEP.join((CACHE_PREFIX_PERMISSION, scope, user_id))


class AuthorizationService:
    """Centralized permission checking; uses cache when available (5 min TTL typical).

    fresh=True bypasses the cache; mutation services use it for the
    re-check inside their commit transaction.
    """

    def __init__(
        self,
        permission_resolver: IPermissionResolver,
        cache: ICacheService | None = None,
        cache_ttl: int = 300,
    ) -> None:
        self.permission_resolver = permission_resolver
        self.cache = cache
        self.cache_ttl = cache_ttl

    def _cache_usable(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    async def get_user_permissions(
        self, user_id: str, tenant_id: str | None, *, fresh: bool = False
    ) -> set[str]:
        """Return the effective permission keys for user in scope (None = central)."""
        key = permission_cache_key(user_id, tenant_id)
        if not fresh and self._cache_usable():
            cached = await self.cache.get(key)
            if cached is not None:
                return set(cached)

        permissions = await self.permission_resolver.get_user_permissions(
            user_id, tenant_id
        )
        if self._cache_usable():
            await self.cache.set(key, sorted(permissions), ttl=self.cache_ttl)
        return permissions

    async def check_any(
        self,
        user_id: str,
        tenant_id: str | None,
        required: list[str],
        *,
        fresh: bool = False,
    ) -> bool:
        """Return True if the user holds any required key (or its coarse override)."""
        permissions = await self.get_user_permissions(user_id, tenant_id, fresh=fresh)
        return has_any(permissions, required)

    async def require_any(
        self,
        user_id: str,
        tenant_id: str | None,
        required: list[str],
        *,
        fresh: bool = False,
    ) -> None:
        """Raise AuthorizationException if the user holds none of required."""
        if not await self.check_any(user_id, tenant_id, required, fresh=fresh):
            raise AuthorizationException(required=required, tenant_id=tenant_id)

    async def invalidate_user_cache(self, user_id: str, tenant_id: str | None) -> None:
        """Invalidate cached permissions for one user in one scope."""
        if self._cache_usable():
            await self.cache.delete(permission_cache_key(user_id, tenant_id))

    async def invalidate_user_everywhere(self, user_id: str) -> None:
        """Invalidate a user's cached permissions in every scope."""
        if self._cache_usable():
            await self.cache.delete_pattern(
                CACHE_KEY_SEP.join((CACHE_PREFIX_PERMISSION, "*", user_id))
            )

    async def invalidate_all(self) -> None:
        """Invalidate every cached permission set (role or permission graph changed)."""
        if self._cache_usable():
            await self.cache.delete_pattern(f"{CACHE_PREFIX_PERMISSION}{CACHE_KEY_SEP}*")
