"""Tests for ProtectedEntityPolicy and has_any (coarse overrides)."""

import pytest

from hive_admin.core.config import Settings
from hive_admin.core.policy import build_policy
from hive_admin.domain.policy import (
    COARSE_OVERRIDES,
    ProtectedEntityPolicy,
    has_any,
    permission_domain,
)


@pytest.fixture
def policy() -> ProtectedEntityPolicy:
    return ProtectedEntityPolicy(
        central_superadmin_key="central_superadmin",
        tenant_superadmin_key="tenant_superadmin",
        system_permission_keys=frozenset({"manage_tenants", "root"}),
        system_permission_prefixes=("sys_",),
    )


def test_protected_role_keys(policy: ProtectedEntityPolicy) -> None:
    assert policy.is_protected_role_key("central_superadmin")
    assert policy.is_protected_role_key("tenant_superadmin")
    assert not policy.is_protected_role_key("tenant_admin")
    assert not policy.is_protected_role_key(None)


def test_system_permission_keys_exact_and_prefix(policy: ProtectedEntityPolicy) -> None:
    assert policy.is_system_permission_key("manage_tenants")
    assert policy.is_system_permission_key("sys_reindex")
    assert not policy.is_system_permission_key("roles.create")
    assert not policy.is_system_permission_key("")


def test_build_policy_reads_settings() -> None:
    settings = Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="k",
        central_superadmin_role_key="platform_owner",
        system_permission_keys="a, b,,c",
        system_permission_prefixes="",
        _env_file=None,
    )
    policy = build_policy(settings)
    assert policy.central_superadmin_key == "platform_owner"
    assert policy.system_permission_keys == frozenset({"a", "b", "c"})
    assert policy.system_permission_prefixes == ()


def test_permission_domain() -> None:
    assert permission_domain("roles.create") == "roles"
    assert permission_domain("manage_users") == "manage_users"


def test_has_any_direct_match() -> None:
    assert has_any({"roles.view"}, ["roles.create", "roles.view"])
    assert not has_any({"roles.view"}, ["roles.create"])
    assert not has_any(set(), ["roles.create"])


@pytest.mark.parametrize(
    ("held", "required"),
    [
        ({"manage_roles"}, "roles.delete"),
        ({"manage_security"}, "roles.create"),
        ({"manage_users"}, "users.update"),
        ({"manage_security"}, "users.delete"),
        ({"manage_roles"}, "permissions.create"),
    ],
)
def test_has_any_coarse_override(held: set[str], required: str) -> None:
    assert has_any(held, [required])


def test_coarse_override_does_not_cross_domains() -> None:
    assert not has_any({"manage_users"}, ["roles.create"])
    assert not has_any({"manage_roles"}, ["users.delete"])


def test_view_security_is_not_an_override() -> None:
    """view_security only gates the UI area; it grants no mutation."""
    for overrides in COARSE_OVERRIDES.values():
        assert "view_security" not in overrides
    assert not has_any({"view_security"}, ["roles.create", "users.delete"])


def test_has_any_accepts_any_iterable() -> None:
    assert has_any(["users.view"], ("users.view",))
