"""Role application service: create/update with permission sync, delete, bulk delete.

Every operation re-checks authorization and invariants inside its own
transaction. Role deletion uses one policy for single and bulk deletes:
memberships holding the role have role_id cleared, then the role and its
role_permission rows are deleted.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.dtos.bulk import BulkDeleteResult
from hive_admin.application.dtos.mutation import MutationMode, MutationResult
from hive_admin.application.dtos.role import RoleInput, RoleResult
from hive_admin.application.services.bulk_delete import BulkDeleteCoordinator
from hive_admin.application.services.validation import normalize_key, normalize_name
from hive_admin.domain.enums import RoleScope
from hive_admin.domain.exceptions import (
    KeyInUseException,
    ProtectedEntityException,
    ResourceNotFoundException,
    ScopeMismatchException,
    ValidationException,
)
from hive_admin.infrastructure.persistence.database import transaction
from hive_admin.infrastructure.persistence.errors import is_unique_violation
from hive_admin.infrastructure.persistence.repositories.role_repo import role_to_result
from hive_admin.shared.enums import AuditAction
from hive_admin.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from hive_admin.application.services.authorization_service import (
        AuthorizationService,
    )
    from hive_admin.domain.policy import ProtectedEntityPolicy
    from hive_admin.infrastructure.persistence.models.role import Role
    from hive_admin.infrastructure.persistence.repositories import (
        MembershipRepository,
        PermissionRepository,
        RolePermissionRepository,
        RoleRepository,
        TenantRepository,
    )

logger = get_logger(__name__)

CANNOT_CREATE_PROTECTED_ROLE = "CANNOT_CREATE_PROTECTED_ROLE"
CANNOT_CHANGE_PROTECTED_KEY = "CANNOT_CHANGE_PROTECTED_KEY"
CANNOT_DELETE_PROTECTED_ROLE = "CANNOT_DELETE_PROTECTED_ROLE"
ROLE_TENANT_MISMATCH = "ROLE_TENANT_MISMATCH"
ROLE_SCOPE_MISMATCH = "ROLE_SCOPE_MISMATCH"


class RoleService:
    """Role mutations. tenant_id None means the central scope throughout."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        authz: AuthorizationService,
        policy: ProtectedEntityPolicy,
        role_repo: RoleRepository,
        permission_repo: PermissionRepository,
        role_permission_repo: RolePermissionRepository,
        membership_repo: MembershipRepository,
        tenant_repo: TenantRepository,
        tx_timeout: float,
        sync_timeout: float,
        bulk_timeout: float,
    ) -> None:
        self.db = db
        self._authz = authz
        self._policy = policy
        self._roles = role_repo
        self._permissions = permission_repo
        self._role_permissions = role_permission_repo
        self._memberships = membership_repo
        self._tenants = tenant_repo
        self._tx_timeout = tx_timeout
        self._sync_timeout = sync_timeout
        self._bulk = BulkDeleteCoordinator(db, bulk_timeout)

    async def create_or_update_role(
        self, actor_id: str, data: RoleInput
    ) -> MutationResult:
        """Create (data.id None) or update a role and replace its permission set.

        Raises:
            ValidationException: Bad key/name or unknown permission ids.
            ScopeMismatchException: scope disagrees with tenant_id, or the role lives elsewhere.
            AuthorizationException: Actor lacks roles.create / roles.update.
            ProtectedEntityException: Minting a protected role or renaming one.
            KeyInUseException: (tenant_id, key) already taken.
        """
        key = normalize_key(data.key)
        name = normalize_name(data.name)
        tenant_id = data.tenant_id
        if data.scope is not None and data.scope != RoleScope.for_tenant(tenant_id):
            raise ScopeMismatchException(ROLE_SCOPE_MISMATCH, data.id, tenant_id, None)
        required = ["roles.update"] if data.id else ["roles.create"]
        permission_ids = set(data.permission_ids)

        try:
            async with transaction(self.db, self._sync_timeout):
                await self._authz.require_any(actor_id, tenant_id, required, fresh=True)
                if tenant_id is not None and await self._tenants.get_by_id(tenant_id) is None:
                    raise ResourceNotFoundException("tenant", tenant_id)
                missing = await self._permissions.find_missing_ids(permission_ids)
                if missing:
                    raise ValidationException(
                        f"Unknown permission ids: {', '.join(sorted(missing))}",
                        field="permission_ids",
                    )
                if data.id is None:
                    role = await self._create(tenant_id, key, name)
                    mode = MutationMode.CREATED
                else:
                    role = await self._update(data.id, tenant_id, key, name)
                    mode = MutationMode.UPDATED
                await self._role_permissions.replace_for_role(role.id, permission_ids)
                await self._roles.emit_custom_audit(
                    role,
                    AuditAction.PERMISSIONS_SYNCED,
                    {"permission_count": len(permission_ids)},
                )
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            raise KeyInUseException("role", key, tenant_id) from exc

        await self._authz.invalidate_all()
        logger.info(
            "Role %s: id=%s key=%s tenant=%s permissions=%d",
            mode.value,
            role.id,
            key,
            tenant_id,
            len(permission_ids),
        )
        return MutationResult(mode=mode, id=role.id)

    async def _create(self, tenant_id: str | None, key: str, name: str) -> Role:
        if self._policy.is_protected_role_key(key):
            raise ProtectedEntityException(
                CANNOT_CREATE_PROTECTED_ROLE,
                f"Role key '{key}' is reserved for a built-in role",
                {"key": key},
            )
        if await self._roles.get_by_key(tenant_id, key) is not None:
            raise KeyInUseException("role", key, tenant_id)
        return await self._roles.create_role(tenant_id=tenant_id, key=key, name=name)

    async def _update(
        self, role_id: str, tenant_id: str | None, key: str, name: str
    ) -> Role:
        role = await self._roles.get_by_id(role_id, for_update=True)
        if role is None:
            raise ResourceNotFoundException("role", role_id)
        if role.tenant_id != tenant_id:
            raise ScopeMismatchException(ROLE_TENANT_MISMATCH, role.id, tenant_id, role.tenant_id)
        if key != role.key:
            if self._policy.is_protected_role_key(role.key):
                raise ProtectedEntityException(
                    CANNOT_CHANGE_PROTECTED_KEY,
                    f"The key of built-in role '{role.key}' cannot be changed",
                    {"role_id": role.id, "key": role.key},
                )
            if self._policy.is_protected_role_key(key):
                raise ProtectedEntityException(
                    CANNOT_CREATE_PROTECTED_ROLE,
                    f"Role key '{key}' is reserved for a built-in role",
                    {"key": key},
                )
            if await self._roles.get_by_key(tenant_id, key, exclude_id=role.id) is not None:
                raise KeyInUseException("role", key, tenant_id)
        role.key = key
        role.name = name
        return await self._roles.update(role)

    def deletion_blocker(self, role: Role, tenant_id: str | None) -> str | None:
        """Return why role cannot be deleted from scope tenant_id, or None."""
        if role.tenant_id != tenant_id:
            return ROLE_TENANT_MISMATCH
        if self._policy.is_protected_role_key(role.key):
            return CANNOT_DELETE_PROTECTED_ROLE
        return None

    async def _delete_roles(self, roles: list[Role]) -> None:
        for role in roles:
            cleared = await self._memberships.nullify_role([role.id])
            if cleared:
                await self._roles.emit_custom_audit(
                    role, AuditAction.ROLE_NULLIFIED, {"memberships_cleared": cleared}
                )
                logger.info("Cleared role %s on %d memberships", role.id, cleared)
        await self._role_permissions.delete_for_roles([r.id for r in roles])
        for role in roles:
            await self._roles.delete(role)

    async def delete_role(
        self, actor_id: str, role_id: str, tenant_id: str | None = None
    ) -> None:
        """Delete one role; memberships on it keep existing with role_id cleared.

        Raises:
            ResourceNotFoundException: Unknown role.
            ScopeMismatchException: Role belongs to another scope.
            ProtectedEntityException: Role is a built-in protected role.
        """
        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(actor_id, tenant_id, ["roles.delete"], fresh=True)
            role = await self._roles.get_by_id(role_id, for_update=True)
            if role is None:
                raise ResourceNotFoundException("role", role_id)
            reason = self.deletion_blocker(role, tenant_id)
            if reason == ROLE_TENANT_MISMATCH:
                raise ScopeMismatchException(reason, role.id, tenant_id, role.tenant_id)
            if reason == CANNOT_DELETE_PROTECTED_ROLE:
                raise ProtectedEntityException(
                    reason,
                    f"Built-in role '{role.key}' cannot be deleted",
                    {"role_id": role.id, "key": role.key},
                )
            await self._delete_roles([role])
        await self._authz.invalidate_all()
        logger.info("Role deleted: id=%s tenant=%s", role_id, tenant_id)

    async def delete_roles(
        self, actor_id: str, role_ids: Iterable[str], tenant_id: str | None = None
    ) -> BulkDeleteResult:
        """Delete every deletable role among role_ids; report the others as blocked."""
        result = await self._bulk.run(role_ids, _RoleDeletePlan(self, actor_id, tenant_id))
        if result.deleted_count:
            await self._authz.invalidate_all()
        return result

    async def get_role_permission_ids(
        self, actor_id: str, role_id: str, tenant_id: str | None = None
    ) -> set[str]:
        """Return the permission ids granted by a role visible in scope."""
        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(actor_id, tenant_id, ["roles.view"], fresh=True)
            role = await self._roles.get_by_id(role_id)
            if role is None:
                raise ResourceNotFoundException("role", role_id)
            if role.tenant_id != tenant_id:
                raise ScopeMismatchException(
                    ROLE_TENANT_MISMATCH, role.id, tenant_id, role.tenant_id
                )
            return await self._role_permissions.get_permission_ids(role.id)

    async def list_roles(
        self, actor_id: str, tenant_id: str | None = None, skip: int = 0, limit: int = 100
    ) -> list[RoleResult]:
        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(actor_id, tenant_id, ["roles.view"])
            roles = await self._roles.list_for_scope(tenant_id, skip=skip, limit=limit)
            return [role_to_result(r, self._policy) for r in roles]


class _RoleDeletePlan:
    """Bulk role delete steps for BulkDeleteCoordinator."""

    entity = "role"

    def __init__(self, service: RoleService, actor_id: str, tenant_id: str | None) -> None:
        self._service = service
        self._actor_id = actor_id
        self._tenant_id = tenant_id

    async def authorize(self) -> None:
        await self._service._authz.require_any(
            self._actor_id, self._tenant_id, ["roles.delete"], fresh=True
        )

    async def load(self, ids: list[str]) -> dict[str, Role]:
        roles = await self._service._roles.get_many(ids, for_update=True)
        return {role.id: role for role in roles}

    async def blocked_reason(self, item: Role, accepted: list[Role]) -> str | None:
        return self._service.deletion_blocker(item, self._tenant_id)

    async def execute(self, items: list[Role]) -> None:
        await self._service._delete_roles(items)
