"""RolePermission repository: role-permission join rows (replace-all semantics)."""

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.models.permission import RolePermission


class RolePermissionRepository:
    """Role-permission link table only."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_permission_ids(self, role_id: str) -> set[str]:
        result = await self.db.execute(
            select(RolePermission.permission_id).where(RolePermission.role_id == role_id)
        )
        return set(result.scalars().all())

    async def replace_for_role(self, role_id: str, permission_ids: set[str]) -> None:
        """Delete all of the role's rows, then insert one row per permission id."""
        await self.db.execute(
            delete(RolePermission).where(RolePermission.role_id == role_id)
        )
        if permission_ids:
            await self.db.execute(
                insert(RolePermission),
                [
                    {"role_id": role_id, "permission_id": pid}
                    for pid in sorted(permission_ids)
                ],
            )

    async def add_missing(self, role_id: str, permission_ids: set[str]) -> int:
        """Insert rows for permission ids the role does not hold yet; return count added."""
        missing = permission_ids - await self.get_permission_ids(role_id)
        if missing:
            await self.db.execute(
                insert(RolePermission),
                [{"role_id": role_id, "permission_id": pid} for pid in sorted(missing)],
            )
        return len(missing)

    async def delete_for_roles(self, role_ids: list[str]) -> None:
        if role_ids:
            await self.db.execute(
                delete(RolePermission).where(RolePermission.role_id.in_(role_ids))
            )

    async def count_references(self, permission_ids: list[str]) -> dict[str, int]:
        """Return {permission_id: number of roles referencing it} for referenced ids only."""
        if not permission_ids:
            return {}
        result = await self.db.execute(
            select(RolePermission.permission_id, func.count())
            .where(RolePermission.permission_id.in_(permission_ids))
            .group_by(RolePermission.permission_id)
        )
        return {pid: count for pid, count in result.all()}
