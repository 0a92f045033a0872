"""Membership application service: onboard, reassign, delete, bulk delete, toggle active.

A membership grants one user one role in one tenant. tenant_id None
addresses the central tenant (looked up by slug). Protected roles have at
most one ACTIVE holder per tenant and may never lose their last one.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.dtos.bulk import BulkDeleteResult
from hive_admin.application.dtos.membership import (
    MembershipInput,
    MembershipResult,
    ToggleActiveResult,
)
from hive_admin.application.dtos.notice import AccountNotice
from hive_admin.application.services.bulk_delete import BulkDeleteCoordinator
from hive_admin.domain.enums import MembershipStatus
from hive_admin.domain.exceptions import (
    KeyInUseException,
    LastAdminStandingException,
    ProtectedEntityException,
    ResourceNotFoundException,
    ScopeMismatchException,
    SelfProtectionException,
    ValidationException,
)
from hive_admin.infrastructure.persistence.database import transaction
from hive_admin.infrastructure.persistence.errors import is_unique_violation
from hive_admin.infrastructure.persistence.repositories.user_repo import normalize_email
from hive_admin.shared.enums import NoticeKind
from hive_admin.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from hive_admin.application.interfaces.services import INotificationDispatcher
    from hive_admin.application.services.authorization_service import (
        AuthorizationService,
    )
    from hive_admin.domain.policy import ProtectedEntityPolicy
    from hive_admin.infrastructure.persistence.models import (
        Membership,
        Role,
        Tenant,
        User,
    )
    from hive_admin.infrastructure.persistence.repositories import (
        MembershipRepository,
        RoleRepository,
        TenantRepository,
        UserRepository,
    )

logger = get_logger(__name__)

EMAIL_IN_USE = "EMAIL_IN_USE"
CANNOT_DELETE_SELF = "CANNOT_DELETE_SELF"
CANNOT_DEACTIVATE_SELF = "CANNOT_DEACTIVATE_SELF"
CANNOT_DELETE_LAST_USER = "CANNOT_DELETE_LAST_USER"
CANNOT_DEACTIVATE_LAST_USER = "CANNOT_DEACTIVATE_LAST_USER"
ROLE_TENANT_MISMATCH = "ROLE_TENANT_MISMATCH"
ROLE_SCOPE_MISMATCH = "ROLE_SCOPE_MISMATCH"

_ACTIVE = MembershipStatus.ACTIVE.value
_DISABLED = MembershipStatus.DISABLED.value


def already_assigned_code(role_key: str) -> str:
    """Reason code for a second protected-role holder, e.g. TENANT_SUPERADMIN_ALREADY_ASSIGNED."""
    return f"{role_key.upper()}_ALREADY_ASSIGNED"


class MembershipService:
    """Membership lifecycle with single-holder and last-admin protection."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        authz: AuthorizationService,
        policy: ProtectedEntityPolicy,
        user_repo: UserRepository,
        role_repo: RoleRepository,
        membership_repo: MembershipRepository,
        tenant_repo: TenantRepository,
        central_tenant_slug: str,
        tx_timeout: float,
        bulk_timeout: float,
        dispatcher: INotificationDispatcher | None = None,
        login_url: str = "",
    ) -> None:
        self.db = db
        self._authz = authz
        self._policy = policy
        self._users = user_repo
        self._roles = role_repo
        self._memberships = membership_repo
        self._tenants = tenant_repo
        self._central_slug = central_tenant_slug
        self._tx_timeout = tx_timeout
        self._bulk = BulkDeleteCoordinator(db, bulk_timeout)
        self._dispatcher = dispatcher
        self._login_url = login_url

    async def create_or_update_membership(
        self, actor_id: str, data: MembershipInput
    ) -> MembershipResult:
        """Onboard a user into a tenant with a role, or change an existing user's role.

        The membership ends up ACTIVE with data.role_id.

        Raises:
            ValidationException: Malformed email.
            AuthorizationException: Actor lacks users.create / users.update in scope.
            ResourceNotFoundException: Unknown role, user or tenant.
            ScopeMismatchException: Role does not belong to the target scope.
            KeyInUseException: Email already used by another user (EMAIL_IN_USE).
            ProtectedEntityException: Protected role already held by someone else.
        """
        email = normalize_email(data.email or "")
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationException("Invalid email address", field="email")
        name = (data.name or "").strip() or None
        tenant_id = data.tenant_id
        required = ["users.update"] if data.user_id else ["users.create"]

        try:
            async with transaction(self.db, self._tx_timeout):
                await self._authz.require_any(actor_id, tenant_id, required, fresh=True)
                tenant = await self._target_tenant(tenant_id, lock=True)
                role = await self._roles.get_by_id(data.role_id, for_update=True)
                if role is None:
                    raise ResourceNotFoundException("role", data.role_id)
                if tenant_id is not None and role.tenant_id != tenant_id:
                    raise ScopeMismatchException(
                        ROLE_TENANT_MISMATCH, role.id, tenant_id, role.tenant_id
                    )
                if tenant_id is None and role.tenant_id is not None:
                    raise ScopeMismatchException(
                        ROLE_SCOPE_MISMATCH, role.id, None, role.tenant_id
                    )
                user, user_created = await self._resolve_user(data.user_id, email, name)
                if self._policy.is_protected_role_key(role.key):
                    holders = await self._memberships.count_active_holders(
                        role.id, tenant.id, exclude_user_ids=[user.id]
                    )
                    if holders:
                        raise ProtectedEntityException(
                            already_assigned_code(role.key),
                            f"Role '{role.key}' is already assigned in this tenant",
                            {"role_id": role.id, "tenant_id": tenant.id},
                        )
                membership, _ = await self._memberships.upsert(
                    tenant_id=tenant.id, user_id=user.id, role_id=role.id
                )
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            raise KeyInUseException("user", email, error_code=EMAIL_IN_USE) from exc

        await self._authz.invalidate_user_everywhere(user.id)
        logger.info(
            "Membership saved: user=%s tenant=%s role=%s created_user=%s",
            user.id,
            membership.tenant_id,
            role.id,
            user_created,
        )
        self._notify(
            NoticeKind.CREATED if user_created else NoticeKind.UPDATED,
            user,
            role=role,
            tenant=tenant,
        )
        return MembershipResult(user_id=user.id)

    async def _target_tenant(self, tenant_id: str | None, *, lock: bool = False) -> Tenant:
        if tenant_id is None:
            tenant = await self._tenants.get_by_slug(self._central_slug)
            if tenant is None:
                raise ResourceNotFoundException("tenant", self._central_slug)
        else:
            tenant = await self._tenants.get_by_id(tenant_id)
            if tenant is None:
                raise ResourceNotFoundException("tenant", tenant_id)
        if lock:
            await self._tenants.lock([tenant.id])
        return tenant

    async def _resolve_user(
        self, user_id: str | None, email: str, name: str | None
    ) -> tuple[User, bool]:
        """Load and update (user_id given) or create the user. Returns (user, created)."""
        if user_id is None:
            if await self._users.get_by_email(email) is not None:
                raise KeyInUseException("user", email, error_code=EMAIL_IN_USE)
            return await self._users.create_user(email, name), True

        user = await self._users.get_by_id(user_id, for_update=True)
        if user is None:
            raise ResourceNotFoundException("user", user_id)
        changed = False
        if user.email != email:
            other = await self._users.get_by_email(email)
            if other is not None and other.id != user.id:
                raise KeyInUseException("user", email, error_code=EMAIL_IN_USE)
            user.email = email
            changed = True
        if name is not None and name != user.name:
            user.name = name
            changed = True
        if changed:
            user = await self._users.update(user)
        return user, False

    async def _role_of(self, membership: Membership) -> Role | None:
        """The membership's role; a protected role is also locked for update."""
        if membership.role_id is None:
            return None
        role = await self._roles.get_by_id(membership.role_id)
        if role is not None and self._policy.is_protected_role_key(role.key):
            await self._roles.get_by_id(role.id, for_update=True)
        return role

    async def leaves_no_admin(
        self, membership: Membership, role: Role | None, removed_user_ids: Collection[str]
    ) -> bool:
        """True if taking removed_user_ids out of membership's tenant strands it.

        Only ACTIVE memberships count. Stranded means the membership's protected
        role would have no ACTIVE holder left, or the tenant no ACTIVE member.
        """
        if membership.status != _ACTIVE:
            return False
        if role is not None and self._policy.is_protected_role_key(role.key):
            holders = await self._memberships.count_active_holders(
                role.id, membership.tenant_id, exclude_user_ids=removed_user_ids
            )
            if holders == 0:
                return True
        remaining = await self._memberships.count_active_in_tenant(
            membership.tenant_id, exclude_user_ids=removed_user_ids
        )
        return remaining == 0

    async def delete_orphaned_user(self, user_id: str) -> bool:
        """Delete the user (and leftover memberships) when no ACTIVE membership remains."""
        if await self._memberships.count_active_for_user(user_id):
            return False
        user = await self._users.get_by_id(user_id, for_update=True)
        if user is None:
            return False
        await self._users.delete_with_memberships(user)
        return True

    async def delete_membership(
        self, actor_id: str, user_id: str, tenant_id: str | None = None
    ) -> None:
        """Remove a user's membership in scope; deletes the user if nothing ACTIVE remains.

        Raises:
            SelfProtectionException: Actor targets themself.
            ResourceNotFoundException: No membership in scope.
            LastAdminStandingException: Would strand a protected role or the tenant.
        """
        if user_id == actor_id:
            raise SelfProtectionException(CANNOT_DELETE_SELF, user_id)

        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(actor_id, tenant_id, ["users.delete"], fresh=True)
            tenant = await self._target_tenant(tenant_id, lock=True)
            membership = await self._memberships.get_for_user(
                tenant.id, user_id, for_update=True
            )
            if membership is None:
                raise ResourceNotFoundException("membership", user_id)
            role = await self._role_of(membership)
            if await self.leaves_no_admin(membership, role, [user_id]):
                raise LastAdminStandingException(
                    CANNOT_DELETE_LAST_USER,
                    "Cannot delete the last active administrator of this tenant",
                    {"user_id": user_id, "tenant_id": tenant.id},
                )
            await self._memberships.delete(membership)
            user_deleted = await self.delete_orphaned_user(user_id)

        await self._authz.invalidate_user_everywhere(user_id)
        logger.info(
            "Membership deleted: user=%s tenant=%s user_deleted=%s",
            user_id,
            tenant.id,
            user_deleted,
        )

    async def delete_memberships(
        self, actor_id: str, user_ids: Iterable[str], tenant_id: str | None = None
    ) -> BulkDeleteResult:
        """Best-effort delete of many memberships in one scope."""
        result = await self._bulk.run(
            user_ids, _MembershipDeletePlan(self, actor_id, tenant_id)
        )
        for user_id in result.deleted_ids:
            await self._authz.invalidate_user_everywhere(user_id)
        return result

    async def toggle_active(
        self,
        actor_id: str,
        user_id: str,
        is_active: bool,
        tenant_id: str | None = None,
    ) -> ToggleActiveResult:
        """Activate or deactivate a user (central scope) or one membership (tenant scope).

        Central scope flips User.is_active and every membership of the user
        (ACTIVE <-> DISABLED; INVITED is left alone). Tenant scope flips only
        the membership in that tenant.

        Raises:
            SelfProtectionException: Actor deactivates themself.
            ResourceNotFoundException: Unknown user, or no membership in the tenant.
            LastAdminStandingException: Deactivation strands a protected role or the tenant.
            ProtectedEntityException: Activation would create a second protected-role holder.
        """
        if not is_active and user_id == actor_id:
            raise SelfProtectionException(CANNOT_DEACTIVATE_SELF, user_id)

        async with transaction(self.db, self._tx_timeout):
            await self._authz.require_any(actor_id, tenant_id, ["users.update"], fresh=True)
            if tenant_id is None:
                current = await self._memberships.list_all_for_user(user_id)
                await self._tenants.lock(m.tenant_id for m in current)
            else:
                await self._tenants.lock([tenant_id])
            user = await self._users.get_by_id(user_id, for_update=True)
            if tenant_id is None:
                if user is None:
                    raise ResourceNotFoundException("user", user_id)
                memberships = await self._memberships.list_all_for_user(
                    user_id, for_update=True
                )
                from_status = _DISABLED if is_active else _ACTIVE
                targets = [m for m in memberships if m.status == from_status]
            else:
                membership = await self._memberships.get_for_user(
                    tenant_id, user_id, for_update=True
                )
                if membership is None or user is None:
                    raise ResourceNotFoundException("membership", user_id)
                targets = [membership]

            if is_active:
                await self._check_activation(targets, user_id)
                new_status = MembershipStatus.ACTIVE
            else:
                await self._check_deactivation(targets, user_id)
                new_status = MembershipStatus.DISABLED
            for membership in targets:
                if membership.status != new_status.value:
                    await self._memberships.set_status(membership, new_status)
            if tenant_id is None and user.is_active != is_active:
                await self._users.set_active(user, is_active)

        await self._authz.invalidate_user_everywhere(user_id)
        logger.info(
            "User %s: user=%s scope=%s memberships=%d",
            "activated" if is_active else "deactivated",
            user_id,
            tenant_id,
            len(targets),
        )
        if not is_active:
            self._notify(NoticeKind.DEACTIVATED, user)
        return ToggleActiveResult(user_id=user_id, is_active=is_active)

    async def _check_deactivation(self, targets: list[Membership], user_id: str) -> None:
        for membership in targets:
            role = await self._role_of(membership)
            if await self.leaves_no_admin(membership, role, [user_id]):
                raise LastAdminStandingException(
                    CANNOT_DEACTIVATE_LAST_USER,
                    "Cannot deactivate the last active administrator of this tenant",
                    {"user_id": user_id, "tenant_id": membership.tenant_id},
                )

    async def _check_activation(self, targets: list[Membership], user_id: str) -> None:
        for membership in targets:
            if membership.status == _ACTIVE:
                continue
            role = await self._role_of(membership)
            if role is None or not self._policy.is_protected_role_key(role.key):
                continue
            holders = await self._memberships.count_active_holders(
                role.id, membership.tenant_id, exclude_user_ids=[user_id]
            )
            if holders:
                raise ProtectedEntityException(
                    already_assigned_code(role.key),
                    f"Role '{role.key}' is already assigned in this tenant",
                    {"role_id": role.id, "tenant_id": membership.tenant_id},
                )

    def _notify(
        self,
        kind: NoticeKind,
        user: User,
        *,
        role: Role | None = None,
        tenant: Tenant | None = None,
    ) -> None:
        if self._dispatcher is None:
            return
        self._dispatcher.dispatch(
            AccountNotice(
                kind=kind,
                email=user.email,
                name=user.name,
                role_name=role.name if role else None,
                tenant_name=tenant.name if tenant else None,
                login_url=self._login_url,
            )
        )


class _MembershipDeletePlan:
    """Bulk membership delete; ids are user ids within one tenant."""

    entity = "membership"

    def __init__(
        self, service: MembershipService, actor_id: str, tenant_id: str | None
    ) -> None:
        self._service = service
        self._actor_id = actor_id
        self._tenant_id = tenant_id
        self._target_tenant_id: str | None = None
        self._roles: dict[str, Role] = {}

    async def authorize(self) -> None:
        await self._service._authz.require_any(
            self._actor_id, self._tenant_id, ["users.delete"], fresh=True
        )
        tenant = await self._service._target_tenant(self._tenant_id, lock=True)
        self._target_tenant_id = tenant.id

    async def load(self, ids: list[str]) -> dict[str, Membership]:
        memberships = await self._service._memberships.list_for_users(
            self._target_tenant_id, ids, for_update=True
        )
        role_ids = list({m.role_id for m in memberships if m.role_id})
        roles = await self._service._roles.get_many(role_ids)
        self._roles = {r.id: r for r in roles}
        policy = self._service._policy
        protected = [r.id for r in roles if policy.is_protected_role_key(r.key)]
        await self._service._roles.get_many(protected, for_update=True)
        return {m.user_id: m for m in memberships}

    async def blocked_reason(
        self, item: Membership, accepted: list[Membership]
    ) -> str | None:
        if item.user_id == self._actor_id:
            return CANNOT_DELETE_SELF
        removed = {m.user_id for m in accepted} | {item.user_id}
        role = self._roles.get(item.role_id) if item.role_id else None
        if await self._service.leaves_no_admin(item, role, removed):
            return CANNOT_DELETE_LAST_USER
        return None

    async def execute(self, items: list[Membership]) -> None:
        for membership in items:
            await self._service._memberships.delete(membership)
        for membership in items:
            await self._service.delete_orphaned_user(membership.user_id)
