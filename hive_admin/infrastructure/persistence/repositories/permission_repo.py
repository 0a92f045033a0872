"""Permission repository: global key lookups with audit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.dtos.permission import PermissionResult
from hive_admin.infrastructure.persistence.models.permission import Permission
from hive_admin.infrastructure.persistence.repositories.auditable_repo import (
    AuditableRepository,
)

if TYPE_CHECKING:
    from hive_admin.application.interfaces.services import IAuditService
    from hive_admin.domain.policy import ProtectedEntityPolicy


def permission_to_result(
    permission: Permission, policy: ProtectedEntityPolicy
) -> PermissionResult:
    """Map ORM Permission to application PermissionResult."""
    return PermissionResult(
        id=permission.id,
        key=permission.key,
        name=permission.name,
        is_system=policy.is_system_permission_key(permission.key),
    )


class PermissionRepository(AuditableRepository[Permission]):
    """Permission repository (permissions are global, not tenant-scoped)."""

    def __init__(
        self, db: AsyncSession, audit_service: IAuditService | None = None
    ) -> None:
        super().__init__(db, Permission, audit_service)

    def _get_entity_type(self) -> str:
        return "permission"

    def _serialize_for_audit(self, obj: Permission) -> dict[str, Any]:
        return {"key": obj.key, "name": obj.name}

    async def get_by_key(
        self, key: str, *, exclude_id: str | None = None
    ) -> Permission | None:
        stmt = select(Permission).where(Permission.key == key)
        if exclude_id is not None:
            stmt = stmt.where(Permission.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_keys(self, keys: list[str]) -> list[Permission]:
        if not keys:
            return []
        result = await self.db.execute(select(Permission).where(Permission.key.in_(keys)))
        return list(result.scalars().all())

    async def list_all(self, skip: int = 0, limit: int = 500) -> list[Permission]:
        result = await self.db.execute(
            select(Permission).order_by(Permission.key).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def get_all_ids(self) -> set[str]:
        result = await self.db.execute(select(Permission.id))
        return set(result.scalars().all())

    async def find_missing_ids(self, permission_ids: set[str]) -> set[str]:
        """Return the subset of permission_ids with no matching row."""
        if not permission_ids:
            return set()
        result = await self.db.execute(
            select(Permission.id).where(Permission.id.in_(permission_ids))
        )
        return permission_ids - set(result.scalars().all())
