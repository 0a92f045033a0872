"""Tenant repository: lookups by slug and by host domain."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.models.tenant import Tenant, TenantDomain
from hive_admin.infrastructure.persistence.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Tenant reads plus idempotent creation for provisioning."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Tenant)

    async def get_by_slug(self, slug: str) -> Tenant | None:
        result = await self.db.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def lock(self, tenant_ids: Iterable[str]) -> None:
        """Lock the tenant rows until the transaction ends (SELECT ... FOR UPDATE, id order).

        Membership mutations take this lock first, which serializes holder and
        member counts per tenant.
        """
        ids = sorted(set(tenant_ids))
        if not ids:
            return
        await self.db.execute(
            select(Tenant.id).where(Tenant.id.in_(ids)).order_by(Tenant.id).with_for_update()
        )

    async def get_by_domain(self, domain: str) -> Tenant | None:
        """Return the tenant owning domain (already normalized), or None."""
        result = await self.db.execute(
            select(Tenant)
            .join(TenantDomain, TenantDomain.tenant_id == Tenant.id)
            .where(TenantDomain.domain == domain)
        )
        return result.scalar_one_or_none()

    async def add_domain(
        self, tenant_id: str, domain: str, *, is_primary: bool = False
    ) -> TenantDomain:
        """Attach a host name to a tenant (returns the existing row if already present)."""
        result = await self.db.execute(
            select(TenantDomain).where(TenantDomain.domain == domain)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing
        row = TenantDomain(tenant_id=tenant_id, domain=domain, is_primary=is_primary)
        self.db.add(row)
        await self.db.flush()
        return row
