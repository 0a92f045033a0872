"""Provisioning is an idempotent upsert of tenants, permissions and built-in roles."""

import pytest
from sqlalchemy import func, select

from hive_admin.core.policy import get_policy
from hive_admin.domain.exceptions import ResourceNotFoundException, ValidationException
from hive_admin.infrastructure.persistence.models import (
    Membership,
    Permission,
    Role,
    RolePermission,
    TenantDomain,
)
from hive_admin.infrastructure.services.rbac_provisioning_service import (
    PERMISSION_CATALOG,
    RbacProvisioningService,
)


async def _provision(session_factory, fn):
    async with session_factory() as session:
        async with session.begin():
            return await fn(RbacProvisioningService(session, get_policy()))


async def _count(session_factory, model, *where) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model).where(*where))


async def test_reprovisioning_is_idempotent(seeded, session_factory) -> None:
    roles_before = await _count(session_factory, Role)
    grants_before = await _count(session_factory, RolePermission)

    async def again(svc):
        await svc.ensure_tenant("acme-corp", "Acme Corp", ("acme.localhost",))
        await svc.ensure_permissions()
        await svc.ensure_central_superadmin_role()
        await svc.ensure_tenant_default_roles(seeded.acme_id)
        return await svc.sync_central_superadmin_permissions()

    assert await _provision(session_factory, again) == 0
    assert await _count(session_factory, Role) == roles_before
    assert await _count(session_factory, RolePermission) == grants_before
    assert await _count(session_factory, Permission) == len(PERMISSION_CATALOG)
    domains = await _count(
        session_factory, TenantDomain, TenantDomain.domain == "acme.localhost"
    )
    assert domains == 1


async def test_sync_grants_new_permission_to_superadmin(seeded, session_factory) -> None:
    async def add_and_sync(svc):
        await svc.ensure_permissions([("reports.export", "Export Reports")])
        return await svc.sync_central_superadmin_permissions()

    assert await _provision(session_factory, add_and_sync) == 1
    assert (
        await _count(
            session_factory,
            RolePermission,
            RolePermission.role_id == seeded.central_superadmin_role_id,
        )
        == len(PERMISSION_CATALOG) + 1
    )


async def test_tenant_roles_exclude_tenant_management(seeded, session_factory) -> None:
    manage_tenants = seeded.permissions["manage_tenants"]
    assert (
        await _count(
            session_factory,
            RolePermission,
            RolePermission.permission_id == manage_tenants,
            RolePermission.role_id != seeded.central_superadmin_role_id,
        )
        == 0
    )


async def test_provision_role_rejects_unknown_keys(seeded, session_factory) -> None:
    with pytest.raises(ValidationException):
        await _provision(
            session_factory,
            lambda svc: svc.provision_role("auditor", "Auditor", seeded.acme_id, ["nope"]),
        )


async def test_assign_protected_role_moves_holder(seeded, session_factory) -> None:
    await _provision(
        session_factory,
        lambda svc: svc.assign_membership(
            seeded.acme_id,
            "admin@acme.test",
            "tenant_superadmin",
            role_tenant_id=seeded.acme_id,
        ),
    )
    holders = await _count(
        session_factory,
        Membership,
        Membership.role_id == seeded.acme_roles["tenant_superadmin"],
    )
    assert holders == 1


async def test_assign_unknown_role(seeded, session_factory) -> None:
    with pytest.raises(ResourceNotFoundException):
        await _provision(
            session_factory,
            lambda svc: svc.assign_membership(seeded.acme_id, "x@acme.test", "no_such_role"),
        )
