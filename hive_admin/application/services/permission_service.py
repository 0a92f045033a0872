"""Permission application service. Permissions are global; checks run in central scope."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.dtos.bulk import BulkDeleteResult
from hive_admin.application.dtos.mutation import MutationMode, MutationResult
from hive_admin.application.dtos.permission import PermissionInput, PermissionResult
from hive_admin.application.services.bulk_delete import BulkDeleteCoordinator
from hive_admin.application.services.validation import normalize_key, normalize_name
from hive_admin.domain.exceptions import (
    EntityInUseException,
    KeyInUseException,
    ProtectedEntityException,
    ResourceNotFoundException,
)
from hive_admin.infrastructure.persistence.database import transaction
from hive_admin.infrastructure.persistence.errors import is_unique_violation
from hive_admin.infrastructure.persistence.models.permission import Permission
from hive_admin.infrastructure.persistence.repositories.permission_repo import (
    permission_to_result,
)
from hive_admin.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from hive_admin.application.services.authorization_service import (
        AuthorizationService,
    )
    from hive_admin.domain.policy import ProtectedEntityPolicy
    from hive_admin.infrastructure.persistence.repositories import (
        PermissionRepository,
        RolePermissionRepository,
    )

logger = get_logger(__name__)

KEY_RESERVED_FOR_SYSTEM = "KEY_RESERVED_FOR_SYSTEM"
CANNOT_CHANGE_SYSTEM_PERMISSION = "CANNOT_CHANGE_SYSTEM_PERMISSION"
CANNOT_DELETE_SYSTEM_PERMISSION = "CANNOT_DELETE_SYSTEM_PERMISSION"
PERMISSION_IN_USE = "PERMISSION_IN_USE"

# Permission checks always use the central scope.
_SCOPE = None


class PermissionService:
    """Create, update and delete permission definitions."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        authz: AuthorizationService,
        policy: ProtectedEntityPolicy,
        permission_repo: PermissionRepository,
        role_permission_repo: RolePermissionRepository,
        tx_timeout: float,
        bulk_timeout: float,
    ) -> None:
        self.db = db
        self._authz = authz
        self._policy = policy
        self._permissions = permission_repo
        self._role_permissions = role_permission_repo
        self._tx_timeout = tx_timeout
        self._bulk = BulkDeleteCoordinator(db, bulk_timeout)

    async def create_or_update_permission(
        self, actor_id: str, data: PermissionInput
    ) -> MutationResult:
        """Create (data.id None) or update a permission.

        Raises:
            ValidationException: Bad key or name.
            AuthorizationException: Actor lacks permissions.create / permissions.update.
            ProtectedEntityException: System key requested, or the stored key is a system key.
            KeyInUseException: Key already taken by another permission.
        """
        key = normalize_key(data.key)
        name = normalize_name(data.name)
        if self._policy.is_system_permission_key(key):
            raise ProtectedEntityException(
                KEY_RESERVED_FOR_SYSTEM,
                f"Permission key '{key}' is reserved for the system",
                {"key": key},
            )
        required = ["permissions.update"] if data.id else ["permissions.create"]

        try:
            async with transaction(self.db, self._tx_timeout):
                await self._authz.require_any(actor_id, _SCOPE, required, fresh=True)
                if data.id is None:
                    await self._check_key_free(key, None)
                    permission = await self._permissions.create(
                        Permission(key=key, name=name)
                    )
                    mode = MutationMode.CREATED
                else:
                    permission = await self._permissions.get_by_id(data.id, for_update=True)
                    if permission is None:
                        raise ResourceNotFoundException("permission", data.id)
                    if self._policy.is_system_permission_key(permission.key):
                        raise ProtectedEntityException(
                            CANNOT_CHANGE_SYSTEM_PERMISSION,
                            f"System permission '{permission.key}' cannot be changed",
                            {"permission_id": permission.id, "key": permission.key},
                        )
                    await self._check_key_free(key, permission.id)
                    permission.key = key
                    permission.name = name
                    permission = await self._permissions.update(permission)
                    mode = MutationMode.UPDATED
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            raise KeyInUseException("permission", key) from exc

        await self._authz.invalidate_all()
        logger.info("Permission %s: id=%s key=%s", mode.value, permission.id, key)
        return MutationResult(mode=mode, id=permission.id)

    async def _check_key_free(self, key: str, permission_id: str | None) -> None:
        if await self._permissions.get_by_key(key, exclude_id=permission_id) is not None:
            raise KeyInUseException("permission", key)

    def _system_blocker(self, permission: Permission) -> str | None:
        if self._policy.is_system_permission_key(permission.key):
            return CANNOT_DELETE_SYSTEM_PERMISSION
        return None

    async def delete_permission(self, actor_id: str, permission_id: str) -> None:
        """Delete an unreferenced, non-system permission.

        Raises:
            ResourceNotFoundException: Unknown permission.
            ProtectedEntityException: System permission.
            EntityInUseException: Still granted by at least one role.
        """
        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(
                actor_id, _SCOPE, ["permissions.delete"], fresh=True
            )
            permission = await self._permissions.get_by_id(permission_id, for_update=True)
            if permission is None:
                raise ResourceNotFoundException("permission", permission_id)
            if self._system_blocker(permission):
                raise ProtectedEntityException(
                    CANNOT_DELETE_SYSTEM_PERMISSION,
                    f"System permission '{permission.key}' cannot be deleted",
                    {"permission_id": permission.id, "key": permission.key},
                )
            references = await self._role_permissions.count_references([permission.id])
            if references.get(permission.id):
                raise EntityInUseException(
                    "permission", permission.id, references[permission.id]
                )
            await self._permissions.delete(permission)
        await self._authz.invalidate_all()
        logger.info("Permission deleted: id=%s", permission_id)

    async def delete_permissions(
        self, actor_id: str, permission_ids: Iterable[str]
    ) -> BulkDeleteResult:
        result = await self._bulk.run(permission_ids, _PermissionDeletePlan(self, actor_id))
        if result.deleted_count:
            await self._authz.invalidate_all()
        return result

    async def list_permissions(
        self, actor_id: str, skip: int = 0, limit: int = 500
    ) -> list[PermissionResult]:
        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(actor_id, _SCOPE, ["permissions.view"])
            permissions = await self._permissions.list_all(skip=skip, limit=limit)
            return [permission_to_result(p, self._policy) for p in permissions]


class _PermissionDeletePlan:
    entity = "permission"

    def __init__(self, service: PermissionService, actor_id: str) -> None:
        self._service = service
        self._actor_id = actor_id
        self._references: dict[str, int] = {}

    async def authorize(self) -> None:
        await self._service._authz.require_any(
            self._actor_id, _SCOPE, ["permissions.delete"], fresh=True
        )

    async def load(self, ids: list[str]) -> dict[str, Permission]:
        permissions = await self._service._permissions.get_many(ids, for_update=True)
        self._references = await self._service._role_permissions.count_references(
            [p.id for p in permissions]
        )
        return {p.id: p for p in permissions}

    async def blocked_reason(
        self, item: Permission, accepted: list[Permission]
    ) -> str | None:
        reason = self._service._system_blocker(item)
        if reason is not None:
            return reason
        if self._references.get(item.id):
            return PERMISSION_IN_USE
        return None

    async def execute(self, items: list[Permission]) -> None:
        for permission in items:
            await self._service._permissions.delete(permission)
