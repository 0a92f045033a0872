"""Composition of the RBAC services over one write session."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.interfaces.services import (
    ICacheService,
    INotificationDispatcher,
)
from hive_admin.application.services.authorization_service import AuthorizationService
from hive_admin.application.services.membership_service import MembershipService
from hive_admin.application.services.permission_service import PermissionService
from hive_admin.application.services.role_service import RoleService
from hive_admin.core.config import Settings
from hive_admin.domain.policy import ProtectedEntityPolicy
from hive_admin.infrastructure.persistence.repositories import (
    MembershipRepository,
    PermissionRepository,
    RolePermissionRepository,
    RoleRepository,
    TenantRepository,
    UserRepository,
)
from hive_admin.infrastructure.services.audit_service import AuditService
from hive_admin.infrastructure.services.permission_resolver import PermissionResolver


@dataclass(frozen=True)
class RbacServices:
    authz: AuthorizationService
    roles: RoleService
    permissions: PermissionService
    memberships: MembershipService


def build_authorization_service(
    db: AsyncSession, *, settings: Settings, cache: ICacheService | None = None
) -> AuthorizationService:
    resolver = PermissionResolver(db, settings.central_tenant_slug)
    return AuthorizationService(resolver, cache=cache, cache_ttl=settings.cache_ttl_permissions)


def build_rbac_services(
    db: AsyncSession,
    *,
    settings: Settings,
    policy: ProtectedEntityPolicy,
    cache: ICacheService | None = None,
    dispatcher: INotificationDispatcher | None = None,
) -> RbacServices:
    """Wire repositories, audit and authorization for the three mutation engines.

    All collaborators share db, so checks and writes of one operation run in
    the same transaction.
    """
    audit = AuditService(db)
    authz = build_authorization_service(db, settings=settings, cache=cache)
    role_repo = RoleRepository(db, audit)
    permission_repo = PermissionRepository(db, audit)
    role_permission_repo = RolePermissionRepository(db)
    membership_repo = MembershipRepository(db, audit)
    tenant_repo = TenantRepository(db)

    roles = RoleService(
        db,
        authz=authz,
        policy=policy,
        role_repo=role_repo,
        permission_repo=permission_repo,
        role_permission_repo=role_permission_repo,
        membership_repo=membership_repo,
        tenant_repo=tenant_repo,
        tx_timeout=settings.tx_timeout_seconds,
        sync_timeout=settings.role_sync_tx_timeout_seconds,
        bulk_timeout=settings.bulk_tx_timeout_seconds,
    )
    permissions = PermissionService(
        db,
        authz=authz,
        policy=policy,
        permission_repo=permission_repo,
        role_permission_repo=role_permission_repo,
        tx_timeout=settings.tx_timeout_seconds,
        bulk_timeout=settings.bulk_tx_timeout_seconds,
    )
    memberships = MembershipService(
        db,
        authz=authz,
        policy=policy,
        user_repo=UserRepository(db, audit),
        role_repo=role_repo,
        membership_repo=membership_repo,
        tenant_repo=tenant_repo,
        central_tenant_slug=settings.central_tenant_slug,
        tx_timeout=settings.tx_timeout_seconds,
        bulk_timeout=settings.bulk_tx_timeout_seconds,
        dispatcher=dispatcher,
        login_url=settings.app_url,
    )
    return RbacServices(
        authz=authz, roles=roles, permissions=permissions, memberships=memberships
    )
