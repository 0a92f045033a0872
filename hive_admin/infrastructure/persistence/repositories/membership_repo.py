"""Membership repository: per-tenant role assignment and holder counting."""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.domain.enums import MembershipStatus
from hive_admin.infrastructure.persistence.models.membership import Membership
from hive_admin.infrastructure.persistence.repositories.auditable_repo import (
    AuditableRepository,
)
from hive_admin.shared.enums import AuditAction

if TYPE_CHECKING:
    from hive_admin.application.interfaces.services import IAuditService

_ACTIVE = MembershipStatus.ACTIVE.value


class MembershipRepository(AuditableRepository[Membership]):
    """Membership CRUD with audit. (tenant_id, user_id) identifies a membership."""

    def __init__(
        self, db: AsyncSession, audit_service: IAuditService | None = None
    ) -> None:
        super().__init__(db, Membership, audit_service)

    def _get_entity_type(self) -> str:
        return "membership"

    def _serialize_for_audit(self, obj: Membership) -> dict[str, Any]:
        return {"user_id": obj.user_id, "role_id": obj.role_id, "status": obj.status}

    async def get_for_user(
        self, tenant_id: str, user_id: str, *, for_update: bool = False
    ) -> Membership | None:
        stmt = select(Membership).where(
            Membership.tenant_id == tenant_id, Membership.user_id == user_id
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_users(
        self, tenant_id: str, user_ids: list[str], *, for_update: bool = False
    ) -> list[Membership]:
        if not user_ids:
            return []
        stmt = select(Membership).where(
            Membership.tenant_id == tenant_id, Membership.user_id.in_(user_ids)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all_for_user(
        self, user_id: str, *, for_update: bool = False
    ) -> list[Membership]:
        stmt = select(Membership).where(Membership.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_active_holders(
        self,
        role_id: str,
        tenant_id: str,
        *,
        exclude_user_ids: Collection[str] = (),
    ) -> int:
        """Count ACTIVE memberships in tenant holding role_id, ignoring the given users."""
        stmt = select(func.count()).select_from(Membership).where(
            Membership.role_id == role_id,
            Membership.tenant_id == tenant_id,
            Membership.status == _ACTIVE,
        )
        if exclude_user_ids:
            stmt = stmt.where(Membership.user_id.not_in(list(exclude_user_ids)))
        return (await self.db.execute(stmt)).scalar_one()

    async def count_active_in_tenant(
        self, tenant_id: str, *, exclude_user_ids: Collection[str] = ()
    ) -> int:
        stmt = select(func.count()).select_from(Membership).where(
            Membership.tenant_id == tenant_id,
            Membership.status == _ACTIVE,
        )
        if exclude_user_ids:
            stmt = stmt.where(Membership.user_id.not_in(list(exclude_user_ids)))
        return (await self.db.execute(stmt)).scalar_one()

    async def count_active_for_user(self, user_id: str) -> int:
        """Count the user's ACTIVE memberships across all tenants."""
        stmt = select(func.count()).select_from(Membership).where(
            Membership.user_id == user_id,
            Membership.status == _ACTIVE,
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def upsert(
        self, *, tenant_id: str, user_id: str, role_id: str
    ) -> tuple[Membership, bool]:
        """Create or update the (tenant, user) membership as ACTIVE with role_id.

        Returns:
            (membership, created)
        """
        existing = await self.get_for_user(tenant_id, user_id, for_update=True)
        if existing is None:
            created = await self.create(
                Membership(
                    tenant_id=tenant_id,
                    user_id=user_id,
                    role_id=role_id,
                    status=_ACTIVE,
                )
            )
            return created, True
        existing.role_id = role_id
        existing.status = _ACTIVE
        return await self.update(existing), False

    async def set_status(self, membership: Membership, status: MembershipStatus) -> None:
        membership.status = status.value
        await self.db.flush()
        await self.emit_custom_audit(
            membership,
            AuditAction.ACTIVATED
            if status == MembershipStatus.ACTIVE
            else AuditAction.DEACTIVATED,
        )

    async def nullify_role(self, role_ids: list[str]) -> int:
        """Clear role_id on every membership pointing at role_ids; return rows touched."""
        if not role_ids:
            return 0
        result = await self.db.execute(
            update(Membership)
            .where(Membership.role_id.in_(role_ids))
            .values(role_id=None)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0
