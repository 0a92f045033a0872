"""Builds the process-wide ProtectedEntityPolicy from settings."""

from functools import lru_cache

from hive_admin.core.config import Settings, get_settings
from hive_admin.domain.policy import ProtectedEntityPolicy


def build_policy(settings: Settings) -> ProtectedEntityPolicy:
    """Return an immutable policy for the given settings."""
    return ProtectedEntityPolicy(
        central_superadmin_key=settings.central_superadmin_role_key,
        tenant_superadmin_key=settings.tenant_superadmin_role_key,
        system_permission_keys=frozenset(settings.system_permission_key_list),
        system_permission_prefixes=tuple(settings.system_permission_prefix_list),
    )


@lru_cache
def get_policy() -> ProtectedEntityPolicy:
    """Return the cached policy (call get_policy.cache_clear() after changing settings)."""
    return build_policy(get_settings())
