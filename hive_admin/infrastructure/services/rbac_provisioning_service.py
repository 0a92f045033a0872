"""RBAC provisioning: tenants, permission catalog, built-in roles, superadmin sync.

This is the privileged path: it may create protected roles and system
permissions, which the mutation services refuse. Every method is an
idempotent upsert running in the caller's transaction (seed script,
tenant onboarding).
"""

from __future__ import annotations

from typing import TypedDict

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.domain.enums import MembershipStatus, TenantStatus
from hive_admin.domain.exceptions import ResourceNotFoundException, ValidationException
from hive_admin.domain.policy import ProtectedEntityPolicy
from hive_admin.infrastructure.persistence.models import (
    Membership,
    Permission,
    Role,
    Tenant,
)
from hive_admin.infrastructure.persistence.repositories import (
    MembershipRepository,
    PermissionRepository,
    RolePermissionRepository,
    RoleRepository,
    TenantRepository,
    UserRepository,
)
from hive_admin.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class RoleData(TypedDict):
    """Built-in tenant role definition."""

    name: str
    permissions: list[str] | None  # None = every catalog key except EXCLUDED_FROM_TENANTS


PERMISSION_CATALOG: list[tuple[str, str]] = [
    ("dashboard.view", "View Dashboard"),
    ("manage_tenants", "Manage Tenants"),
    ("manage_settings", "Manage Settings"),
    ("manage_billing", "Manage Billing & Subscriptions"),
    ("view_audit_logs", "View Audit Logs"),
    ("view_security", "View Security Area"),
    ("manage_security", "Manage Security (Users/Roles)"),
    ("users.view", "View Users"),
    ("users.create", "Create Users"),
    ("users.update", "Update Users"),
    ("users.delete", "Delete Users"),
    ("roles.view", "View Roles"),
    ("roles.create", "Create Roles"),
    ("roles.update", "Update Roles"),
    ("roles.delete", "Delete Roles"),
    ("permissions.view", "View Permissions"),
    ("permissions.create", "Create Permissions"),
    ("permissions.update", "Update Permissions"),
    ("permissions.delete", "Delete Permissions"),
    ("manage_users", "Manage Users"),
    ("manage_roles", "Manage Roles & Permissions"),
    ("files.view", "View Files"),
    ("files.upload", "Upload Files"),
    ("files.update", "Rename / Move Files"),
    ("files.delete", "Delete Files"),
    ("folders.view", "View Folders"),
    ("folders.create", "Create Folders"),
    ("folders.update", "Rename / Move Folders"),
    ("folders.delete", "Delete Folders"),
    ("manage_files", "Manage Files & Folders"),
    ("settings.brand.view", "View Brand Settings"),
    ("settings.brand.update", "Update Brand Settings"),
    ("departments.view", "View Departments"),
    ("departments.create", "Create Departments"),
    ("departments.update", "Update Departments"),
    ("departments.delete", "Delete Departments"),
]

# Tenant roles never receive platform-level tenant management.
EXCLUDED_FROM_TENANTS: frozenset[str] = frozenset({"manage_tenants"})

CENTRAL_SUPERADMIN_NAME = "Central Super Administrator"


def default_tenant_roles(policy: ProtectedEntityPolicy) -> dict[str, RoleData]:
    """Built-in roles every tenant gets, keyed by role key."""
    return {
        policy.tenant_superadmin_key: {
            "name": "Tenant Super Administrator",
            "permissions": None,
        },
        "tenant_admin": {"name": "Tenant Administrator", "permissions": None},
        "tenant_member": {
            "name": "Tenant Member",
            "permissions": ["manage_files", "files.view", "files.upload"],
        },
    }


class RbacProvisioningService:
    """Idempotent setup of tenants, permissions, built-in roles and their holders."""

    def __init__(self, db: AsyncSession, policy: ProtectedEntityPolicy) -> None:
        self.db = db
        self.policy = policy
        self._tenants = TenantRepository(db)
        self._permissions = PermissionRepository(db)
        self._roles = RoleRepository(db)
        self._role_permissions = RolePermissionRepository(db)
        self._users = UserRepository(db)
        self._memberships = MembershipRepository(db)

    async def ensure_tenant(
        self, slug: str, name: str, domains: tuple[str, ...] = ()
    ) -> Tenant:
        """Create the tenant (ACTIVE) or refresh its name; attach host domains."""
        tenant = await self._tenants.get_by_slug(slug)
        if tenant is None:
            tenant = await self._tenants.create(
                Tenant(slug=slug, name=name, status=TenantStatus.ACTIVE.value)
            )
            logger.info("Provisioned tenant %s (%s)", slug, tenant.id)
        elif tenant.name != name:
            tenant.name = name
            await self._tenants.update(tenant)
        for index, domain in enumerate(domains):
            await self._tenants.add_domain(tenant.id, domain, is_primary=index == 0)
        return tenant

    async def ensure_permissions(
        self, catalog: list[tuple[str, str]] = PERMISSION_CATALOG
    ) -> dict[str, str]:
        """Insert missing catalog permissions; return {key: id} for the whole catalog."""
        existing = {p.key: p for p in await self._permissions.get_by_keys([k for k, _ in catalog])}
        added = 0
        for key, name in catalog:
            if key not in existing:
                existing[key] = await self._permissions.create(Permission(key=key, name=name))
                added += 1
        if added:
            logger.info("Provisioned %d permissions", added)
        return {key: permission.id for key, permission in existing.items()}

    async def provision_role(
        self,
        key: str,
        name: str,
        tenant_id: str | None,
        permission_keys: list[str],
    ) -> Role:
        """Create or rename the role and set its permissions to exactly permission_keys.

        Raises:
            ValidationException: A permission key does not exist.
        """
        permissions = await self._permissions.get_by_keys(permission_keys)
        missing = set(permission_keys) - {p.key for p in permissions}
        if missing:
            raise ValidationException(
                f"Unknown permission keys: {', '.join(sorted(missing))}",
                field="permission_keys",
            )
        role = await self._roles.get_by_key(tenant_id, key)
        if role is None:
            role = await self._roles.create_role(tenant_id=tenant_id, key=key, name=name)
        elif role.name != name:
            role.name = name
            role = await self._roles.update(role)
        await self._role_permissions.replace_for_role(role.id, {p.id for p in permissions})
        return role

    async def ensure_tenant_default_roles(self, tenant_id: str) -> dict[str, Role]:
        """Provision the built-in roles of a tenant; return them keyed by role key."""
        all_keys = sorted(
            p.key
            for p in await self._permissions.list_all(limit=10_000)
            if p.key not in EXCLUDED_FROM_TENANTS
        )
        roles: dict[str, Role] = {}
        for key, data in default_tenant_roles(self.policy).items():
            keys = all_keys if data["permissions"] is None else data["permissions"]
            roles[key] = await self.provision_role(key, data["name"], tenant_id, keys)
        return roles

    async def ensure_central_superadmin_role(self) -> Role:
        role = await self._roles.get_by_key(None, self.policy.central_superadmin_key)
        if role is None:
            role = await self._roles.create_role(
                tenant_id=None,
                key=self.policy.central_superadmin_key,
                name=CENTRAL_SUPERADMIN_NAME,
            )
        return role

    async def sync_central_superadmin_permissions(self) -> int:
        """Grant the central superadmin role every permission it lacks; return count added."""
        role = await self._roles.get_by_key(None, self.policy.central_superadmin_key)
        if role is None:
            logger.warning(
                "Role %s not found; skipping permission sync",
                self.policy.central_superadmin_key,
            )
            return 0
        added = await self._role_permissions.add_missing(
            role.id, await self._permissions.get_all_ids()
        )
        if added:
            logger.info("Central superadmin synced (%d permissions added)", added)
        return added

    async def assign_membership(
        self,
        tenant_id: str,
        email: str,
        role_key: str,
        *,
        role_tenant_id: str | None = None,
        name: str | None = None,
    ) -> Membership:
        """Make email an ACTIVE member of tenant with role_key (defined in role_tenant_id).

        For a protected role any other holder in the tenant is left without a role.

        Raises:
            ResourceNotFoundException: The role does not exist.
        """
        role = await self._roles.get_by_key(role_tenant_id, role_key)
        if role is None:
            raise ResourceNotFoundException("role", role_key)
        user = await self._users.get_by_email(email)
        if user is None:
            user = await self._users.create_user(email, name)
        if self.policy.is_protected_role_key(role.key):
            await self.db.execute(
                update(Membership)
                .where(
                    Membership.tenant_id == tenant_id,
                    Membership.role_id == role.id,
                    Membership.user_id != user.id,
                )
                .values(role_id=None)
                .execution_options(synchronize_session="fetch")
            )
        membership, _ = await self._memberships.upsert(
            tenant_id=tenant_id, user_id=user.id, role_id=role.id
        )
        if membership.status != MembershipStatus.ACTIVE.value:
            await self._memberships.set_status(membership, MembershipStatus.ACTIVE)
        return membership
