"""Tenant resolver: request host -> tenant id (None = central scope)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.repositories.tenant_repo import TenantRepository


def normalize_host(host: str | None) -> str:
    """Lower-case host, keep the first of a comma list, strip port and leading www."""
    if not host:
        return ""
    value = host.split(",")[0].strip().lower()
    if value.startswith("["):
        value = value.split("]")[0].lstrip("[")
    elif value.count(":") == 1:
        value = value.split(":")[0]
    if value.startswith("www."):
        value = value[4:]
    return value


class TenantResolver:
    """Resolves the tenant owning a host via tenant_domain rows."""

    def __init__(self, db: AsyncSession, central_tenant_slug: str) -> None:
        self._tenants = TenantRepository(db)
        self._central_slug = central_tenant_slug

    async def resolve_host(self, host: str | None) -> str | None:
        """Return the tenant id for host; None for unknown hosts and the central tenant."""
        domain = normalize_host(host)
        if not domain:
            return None
        tenant = await self._tenants.get_by_domain(domain)
        if tenant is None or tenant.slug == self._central_slug:
            return None
        return tenant.id
