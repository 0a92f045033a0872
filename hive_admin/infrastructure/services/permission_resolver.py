"""Permission resolver: effective permission keys for (user, tenant scope).

Central override first: an ACTIVE central-tenant membership holding a
central-scope role decides the whole set. Otherwise the ACTIVE membership
in the requested tenant (None = central tenant) holding a role of that
tenant decides it. Anything else resolves to the empty set.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.domain.enums import MembershipStatus, TenantStatus
from hive_admin.infrastructure.persistence.models import (
    Membership,
    Permission,
    Role,
    RolePermission,
    Tenant,
    User,
)
from hive_admin.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class PermissionResolver:
    """Implements IPermissionResolver using SQLAlchemy queries."""

    def __init__(self, db: AsyncSession, central_tenant_slug: str) -> None:
        self.db = db
        self.central_tenant_slug = central_tenant_slug

    async def get_user_permissions(
        self, user_id: str, tenant_id: str | None
    ) -> set[str]:
        """Return permission keys for user in scope; empty set when nothing grants access."""
        is_active = await self.db.scalar(select(User.is_active).where(User.id == user_id))
        if not is_active:
            return set()
        central_id = await self.db.scalar(
            select(Tenant.id).where(Tenant.slug == self.central_tenant_slug)
        )
        if central_id is None:
            logger.warning(
                "Central tenant %r missing; central override unavailable",
                self.central_tenant_slug,
            )
        else:
            override_role = await self._active_role_id(
                user_id, central_id, Role.tenant_id.is_(None)
            )
            if override_role is not None:
                return await self._keys_for_role(override_role)

        scope_id = tenant_id or central_id
        if scope_id is None:
            return set()
        role_id = await self._active_role_id(user_id, scope_id, Role.tenant_id == scope_id)
        if role_id is None:
            return set()
        return await self._keys_for_role(role_id)

    async def _active_role_id(
        self, user_id: str, tenant_id: str, role_clause: Any
    ) -> str | None:
        """Role id of the user's ACTIVE membership in an ACTIVE tenant, if the role matches."""
        result = await self.db.execute(
            select(Role.id)
            .join(Membership, Membership.role_id == Role.id)
            .join(Tenant, Tenant.id == Membership.tenant_id)
            .where(
                Membership.user_id == user_id,
                Membership.tenant_id == tenant_id,
                Membership.status == MembershipStatus.ACTIVE.value,
                Tenant.status == TenantStatus.ACTIVE.value,
                role_clause,
            )
        )
        return result.scalar_one_or_none()

    async def _keys_for_role(self, role_id: str) -> set[str]:
        result = await self.db.execute(
            select(Permission.key)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
        )
        return set(result.scalars().all())
