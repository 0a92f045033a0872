"""Membership lifecycle: onboarding, single-holder roles, last-admin and self protection."""

import asyncio
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from hive_admin.application.dtos.membership import MembershipInput
from hive_admin.domain.exceptions import (
    AuthorizationException,
    KeyInUseException,
    LastAdminStandingException,
    ProtectedEntityException,
    ResourceNotFoundException,
    ScopeMismatchException,
    SelfProtectionException,
    ValidationException,
)
from hive_admin.infrastructure.persistence.models import Membership, User
from hive_admin.shared.enums import NoticeKind


def _membership_of(user_id, tenant_id):
    async def fetch(session):
        return await session.scalar(
            select(Membership).where(
                Membership.user_id == user_id, Membership.tenant_id == tenant_id
            )
        )

    return fetch


def _statuses_of(user_id):
    async def fetch(session):
        rows = await session.execute(
            select(Membership.tenant_id, Membership.status).where(Membership.user_id == user_id)
        )
        return dict(rows.all())

    return fetch


async def _join_beta(services, seeded, user_id, email):
    """Give an existing user a tenant_member membership in beta, its second member."""
    await services.memberships.create_or_update_membership(
        seeded.root_id,
        MembershipInput(
            user_id=user_id,
            email=email,
            role_id=seeded.beta_roles["tenant_member"],
            tenant_id=seeded.beta_id,
        ),
    )


def _active_members(tenant_id, role_id=None):
    async def fetch(session):
        stmt = select(Membership.user_id).where(
            Membership.tenant_id == tenant_id, Membership.status == "ACTIVE"
        )
        if role_id is not None:
            stmt = stmt.where(Membership.role_id == role_id)
        return set((await session.scalars(stmt)).all())

    return fetch


def _disable(user_id, tenant_id):
    async def write(session):
        async with session.begin():
            membership = await session.scalar(
                select(Membership).where(
                    Membership.user_id == user_id, Membership.tenant_id == tenant_id
                )
            )
            membership.status = "DISABLED"

    return write


async def test_onboard_new_user(seeded, make_services, read) -> None:
    dispatcher = MagicMock()
    services = make_services(dispatcher=dispatcher)

    result = await services.memberships.create_or_update_membership(
        seeded.admin_id,
        MembershipInput(
            email=" New.Hire@Acme.test ",
            name="New Hire",
            role_id=seeded.acme_roles["tenant_member"],
            tenant_id=seeded.acme_id,
        ),
    )

    user = await read(lambda s: s.get(User, result.user_id))
    assert user.email == "new.hire@acme.test"
    membership = await read(_membership_of(result.user_id, seeded.acme_id))
    assert membership.role_id == seeded.acme_roles["tenant_member"]
    assert membership.status == "ACTIVE"

    dispatcher.dispatch.assert_called_once()
    notice = dispatcher.dispatch.call_args.args[0]
    assert notice.kind == NoticeKind.CREATED
    assert notice.email == "new.hire@acme.test"
    assert notice.tenant_name == "Acme Corp"
    assert notice.role_name == "Tenant Member"


async def test_onboard_existing_email_conflicts(seeded, services) -> None:
    with pytest.raises(KeyInUseException) as exc_info:
        await services.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(
                email="member@acme.test",
                role_id=seeded.acme_roles["tenant_member"],
                tenant_id=seeded.acme_id,
            ),
        )
    assert exc_info.value.error_code == "EMAIL_IN_USE"


async def test_update_to_email_of_other_user_conflicts(seeded, services) -> None:
    with pytest.raises(KeyInUseException) as exc_info:
        await services.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(
                user_id=seeded.member_id,
                email="admin@acme.test",
                role_id=seeded.acme_roles["tenant_member"],
                tenant_id=seeded.acme_id,
            ),
        )
    assert exc_info.value.error_code == "EMAIL_IN_USE"


async def test_invalid_email_rejected(seeded, services) -> None:
    with pytest.raises(ValidationException):
        await services.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(
                email="not-an-email",
                role_id=seeded.acme_roles["tenant_member"],
                tenant_id=seeded.acme_id,
            ),
        )


async def test_reassign_role(seeded, make_services, read) -> None:
    dispatcher = MagicMock()
    services = make_services(dispatcher=dispatcher)
    await services.memberships.create_or_update_membership(
        seeded.admin_id,
        MembershipInput(
            user_id=seeded.member_id,
            email="member@acme.test",
            role_id=seeded.acme_roles["tenant_admin"],
            tenant_id=seeded.acme_id,
        ),
    )
    membership = await read(_membership_of(seeded.member_id, seeded.acme_id))
    assert membership.role_id == seeded.acme_roles["tenant_admin"]
    assert dispatcher.dispatch.call_args.args[0].kind == NoticeKind.UPDATED


async def test_existing_user_joins_another_tenant(seeded, services, read) -> None:
    await services.memberships.create_or_update_membership(
        seeded.root_id,
        MembershipInput(
            user_id=seeded.member_id,
            email="member@acme.test",
            role_id=seeded.beta_roles["tenant_member"],
            tenant_id=seeded.beta_id,
        ),
    )
    statuses = await read(_statuses_of(seeded.member_id))
    assert statuses == {seeded.acme_id: "ACTIVE", seeded.beta_id: "ACTIVE"}


async def test_role_of_other_tenant_rejected(seeded, services) -> None:
    with pytest.raises(ScopeMismatchException) as exc_info:
        await services.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(
                email="someone@acme.test",
                role_id=seeded.beta_roles["tenant_member"],
                tenant_id=seeded.acme_id,
            ),
        )
    assert exc_info.value.error_code == "ROLE_TENANT_MISMATCH"


async def test_tenant_role_in_central_scope_rejected(seeded, services) -> None:
    with pytest.raises(ScopeMismatchException) as exc_info:
        await services.memberships.create_or_update_membership(
            seeded.root_id,
            MembershipInput(
                email="someone@hive.test",
                role_id=seeded.acme_roles["tenant_member"],
                tenant_id=None,
            ),
        )
    assert exc_info.value.error_code == "ROLE_SCOPE_MISMATCH"


async def test_unknown_role(seeded, services) -> None:
    with pytest.raises(ResourceNotFoundException):
        await services.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(email="x@acme.test", role_id="missing", tenant_id=seeded.acme_id),
        )


async def test_protected_role_has_single_holder(seeded, services, read) -> None:
    with pytest.raises(ProtectedEntityException) as exc_info:
        await services.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(
                user_id=seeded.member_id,
                email="member@acme.test",
                role_id=seeded.acme_roles["tenant_superadmin"],
                tenant_id=seeded.acme_id,
            ),
        )
    assert exc_info.value.error_code == "TENANT_SUPERADMIN_ALREADY_ASSIGNED"
    membership = await read(_membership_of(seeded.member_id, seeded.acme_id))
    assert membership.role_id == seeded.acme_roles["tenant_member"]


async def test_member_cannot_onboard(seeded, services) -> None:
    with pytest.raises(AuthorizationException):
        await services.memberships.create_or_update_membership(
            seeded.member_id,
            MembershipInput(
                email="friend@acme.test",
                role_id=seeded.acme_roles["tenant_member"],
                tenant_id=seeded.acme_id,
            ),
        )


async def test_cannot_deactivate_last_protected_holder(seeded, services, read) -> None:
    """Deactivating the tenant owner is refused and the membership stays ACTIVE."""
    with pytest.raises(LastAdminStandingException) as exc_info:
        await services.memberships.toggle_active(
            seeded.admin_id, seeded.owner_id, False, seeded.acme_id
        )
    assert exc_info.value.error_code == "CANNOT_DEACTIVATE_LAST_USER"
    membership = await read(_membership_of(seeded.owner_id, seeded.acme_id))
    assert membership.status == "ACTIVE"


async def test_cannot_deactivate_self(seeded, services) -> None:
    with pytest.raises(SelfProtectionException) as exc_info:
        await services.memberships.toggle_active(
            seeded.admin_id, seeded.admin_id, False, seeded.acme_id
        )
    assert exc_info.value.error_code == "CANNOT_DEACTIVATE_SELF"


async def test_cannot_delete_self(seeded, services) -> None:
    with pytest.raises(SelfProtectionException) as exc_info:
        await services.memberships.delete_membership(
            seeded.admin_id, seeded.admin_id, seeded.acme_id
        )
    assert exc_info.value.error_code == "CANNOT_DELETE_SELF"


async def test_tenant_toggle_flips_one_membership(seeded, make_services, read) -> None:
    dispatcher = MagicMock()
    services = make_services(dispatcher=dispatcher)

    result = await services.memberships.toggle_active(
        seeded.admin_id, seeded.shared_id, False, seeded.acme_id
    )
    assert result.is_active is False
    assert await read(_statuses_of(seeded.shared_id)) == {
        seeded.acme_id: "DISABLED",
        seeded.beta_id: "ACTIVE",
    }
    user = await read(lambda s: s.get(User, seeded.shared_id))
    assert user.is_active is True
    assert dispatcher.dispatch.call_args.args[0].kind == NoticeKind.DEACTIVATED

    await services.memberships.toggle_active(
        seeded.admin_id, seeded.shared_id, True, seeded.acme_id
    )
    assert (await read(_statuses_of(seeded.shared_id)))[seeded.acme_id] == "ACTIVE"


async def test_central_toggle_flips_user_and_memberships(
    seeded, services, make_services, read
) -> None:
    await _join_beta(services, seeded, seeded.member_id, "member@acme.test")
    await services.memberships.toggle_active(seeded.root_id, seeded.shared_id, False)

    user = await read(lambda s: s.get(User, seeded.shared_id))
    assert user.is_active is False
    assert await read(_statuses_of(seeded.shared_id)) == {
        seeded.acme_id: "DISABLED",
        seeded.beta_id: "DISABLED",
    }
    checker = make_services().authz
    permissions = await checker.get_user_permissions(seeded.shared_id, seeded.beta_id, fresh=True)
    assert permissions == set()

    await services.memberships.toggle_active(seeded.root_id, seeded.shared_id, True)
    user = await read(lambda s: s.get(User, seeded.shared_id))
    assert user.is_active is True
    assert set((await read(_statuses_of(seeded.shared_id))).values()) == {"ACTIVE"}


async def test_reactivation_cannot_duplicate_protected_holder(seeded, services, read) -> None:
    """A disabled former owner cannot come back while someone else holds the role."""
    owner_role = seeded.acme_roles["tenant_superadmin"]

    async def demote_owner_and_promote_admin(session):
        async with session.begin():
            owner = await session.scalar(
                select(Membership).where(Membership.user_id == seeded.owner_id)
            )
            owner.status = "DISABLED"
            admin = await session.scalar(
                select(Membership).where(
                    Membership.user_id == seeded.admin_id,
                    Membership.tenant_id == seeded.acme_id,
                )
            )
            admin.role_id = owner_role

    await read(demote_owner_and_promote_admin)

    with pytest.raises(ProtectedEntityException) as exc_info:
        await services.memberships.toggle_active(
            seeded.admin_id, seeded.owner_id, True, seeded.acme_id
        )
    assert exc_info.value.error_code == "TENANT_SUPERADMIN_ALREADY_ASSIGNED"


async def test_concurrent_reactivation_and_onboarding_keep_single_holder(
    seeded, make_services, read
) -> None:
    """Reactivating the former owner races onboarding a new owner; one of them loses."""
    owner_role = seeded.acme_roles["tenant_superadmin"]
    await read(_disable(seeded.owner_id, seeded.acme_id))
    first, second = make_services(), make_services()

    results = await asyncio.gather(
        first.memberships.toggle_active(
            seeded.admin_id, seeded.owner_id, True, seeded.acme_id
        ),
        second.memberships.create_or_update_membership(
            seeded.admin_id,
            MembershipInput(
                email="new.owner@acme.test", role_id=owner_role, tenant_id=seeded.acme_id
            ),
        ),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], ProtectedEntityException)
    assert errors[0].error_code == "TENANT_SUPERADMIN_ALREADY_ASSIGNED"
    assert len(await read(_active_members(seeded.acme_id, owner_role))) == 1


async def test_cannot_deactivate_last_member_of_tenant(seeded, services, read) -> None:
    """Deactivation refuses to leave beta without an ACTIVE member, like delete."""
    with pytest.raises(LastAdminStandingException) as exc_info:
        await services.memberships.toggle_active(
            seeded.root_id, seeded.shared_id, False, seeded.beta_id
        )
    assert exc_info.value.error_code == "CANNOT_DEACTIVATE_LAST_USER"
    assert await read(_active_members(seeded.beta_id)) == {seeded.shared_id}


async def test_central_deactivation_cannot_empty_a_tenant(seeded, services, read) -> None:
    with pytest.raises(LastAdminStandingException):
        await services.memberships.toggle_active(seeded.root_id, seeded.shared_id, False)

    user = await read(lambda s: s.get(User, seeded.shared_id))
    assert user.is_active is True
    assert set((await read(_statuses_of(seeded.shared_id))).values()) == {"ACTIVE"}


async def test_deactivate_one_of_two_members_of_tenant(seeded, services, read) -> None:
    await _join_beta(services, seeded, seeded.member_id, "member@acme.test")
    await services.memberships.toggle_active(
        seeded.root_id, seeded.shared_id, False, seeded.beta_id
    )
    assert await read(_active_members(seeded.beta_id)) == {seeded.member_id}


async def test_delete_member_deletes_orphaned_user(seeded, services, read) -> None:
    await services.memberships.delete_membership(
        seeded.admin_id, seeded.member_id, seeded.acme_id
    )
    assert await read(lambda s: s.get(User, seeded.member_id)) is None


async def test_delete_shared_member_keeps_user(seeded, services, read) -> None:
    await services.memberships.delete_membership(
        seeded.admin_id, seeded.shared_id, seeded.acme_id
    )
    assert await read(lambda s: s.get(User, seeded.shared_id)) is not None
    assert await read(_statuses_of(seeded.shared_id)) == {seeded.beta_id: "ACTIVE"}


async def test_cannot_delete_last_member_of_tenant(seeded, services, read) -> None:
    with pytest.raises(LastAdminStandingException) as exc_info:
        await services.memberships.delete_membership(
            seeded.root_id, seeded.shared_id, seeded.beta_id
        )
    assert exc_info.value.error_code == "CANNOT_DELETE_LAST_USER"
    assert seeded.beta_id in await read(_statuses_of(seeded.shared_id))


async def test_cannot_delete_sole_protected_holder(seeded, services) -> None:
    with pytest.raises(LastAdminStandingException):
        await services.memberships.delete_membership(
            seeded.admin_id, seeded.owner_id, seeded.acme_id
        )


async def test_concurrent_deletes_keep_one_member_in_tenant(
    seeded, services, make_services, read
) -> None:
    """Deleting beta's two members at once leaves exactly one behind."""
    await _join_beta(services, seeded, seeded.member_id, "member@acme.test")
    first, second = make_services(), make_services()

    results = await asyncio.gather(
        first.memberships.delete_membership(seeded.root_id, seeded.shared_id, seeded.beta_id),
        second.memberships.delete_membership(seeded.root_id, seeded.member_id, seeded.beta_id),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], LastAdminStandingException)
    assert errors[0].error_code == "CANNOT_DELETE_LAST_USER"
    assert len(await read(_active_members(seeded.beta_id))) == 1


async def test_delete_unknown_membership(seeded, services) -> None:
    with pytest.raises(ResourceNotFoundException):
        await services.memberships.delete_membership(
            seeded.admin_id, seeded.root_id, seeded.acme_id
        )


async def test_bulk_delete_memberships(seeded, services, read) -> None:
    result = await services.memberships.delete_memberships(
        seeded.admin_id,
        [seeded.admin_id, "missing", seeded.member_id, seeded.owner_id],
        seeded.acme_id,
    )
    assert result.deleted_ids == [seeded.member_id]
    assert result.blocked == {
        seeded.admin_id: "CANNOT_DELETE_SELF",
        "missing": "NOT_FOUND",
        seeded.owner_id: "CANNOT_DELETE_LAST_USER",
    }
    assert await read(lambda s: s.get(User, seeded.member_id)) is None


async def test_bulk_delete_cannot_empty_tenant(seeded, services) -> None:
    result = await services.memberships.delete_memberships(
        seeded.root_id, [seeded.shared_id], seeded.beta_id
    )
    assert result.deleted_count == 0
    assert result.blocked == {seeded.shared_id: "CANNOT_DELETE_LAST_USER"}
