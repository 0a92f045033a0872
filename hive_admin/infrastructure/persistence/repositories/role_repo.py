"""Role repository: scoped key lookups and deletes with audit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.dtos.role import RoleResult
from hive_admin.domain.enums import RoleScope
from hive_admin.infrastructure.persistence.models.role import Role
from hive_admin.infrastructure.persistence.repositories.auditable_repo import (
    AuditableRepository,
)

if TYPE_CHECKING:
    from hive_admin.application.interfaces.services import IAuditService
    from hive_admin.domain.policy import ProtectedEntityPolicy


def role_to_result(role: Role, policy: ProtectedEntityPolicy) -> RoleResult:
    """Map ORM Role to application RoleResult."""
    return RoleResult(
        id=role.id,
        tenant_id=role.tenant_id,
        key=role.key,
        name=role.name,
        scope=RoleScope(role.scope),
        is_protected=policy.is_protected_role_key(role.key),
    )


def _tenant_clause(tenant_id: str | None) -> Any:
    return Role.tenant_id.is_(None) if tenant_id is None else Role.tenant_id == tenant_id


class RoleRepository(AuditableRepository[Role]):
    """Role repository. tenant_id None addresses central roles throughout."""

    def __init__(
        self, db: AsyncSession, audit_service: IAuditService | None = None
    ) -> None:
        super().__init__(db, Role, audit_service)

    def _get_entity_type(self) -> str:
        return "role"

    def _serialize_for_audit(self, obj: Role) -> dict[str, Any]:
        return {"key": obj.key, "name": obj.name, "scope": obj.scope}

    async def get_by_key(
        self,
        tenant_id: str | None,
        key: str,
        *,
        exclude_id: str | None = None,
    ) -> Role | None:
        """Return the role with key in the given scope (optionally ignoring one id)."""
        stmt = select(Role).where(_tenant_clause(tenant_id), Role.key == key)
        if exclude_id is not None:
            stmt = stmt.where(Role.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_scope(
        self, tenant_id: str | None, skip: int = 0, limit: int = 100
    ) -> list[Role]:
        result = await self.db.execute(
            select(Role)
            .where(_tenant_clause(tenant_id))
            .order_by(Role.key)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_role(
        self, *, tenant_id: str | None, key: str, name: str
    ) -> Role:
        return await self.create(
            Role(
                tenant_id=tenant_id,
                key=key,
                name=name,
                scope=RoleScope.for_tenant(tenant_id).value,
            )
        )
