"""DTOs for membership use cases (no dependency on ORM)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MembershipInput:
    """Onboard a user to a tenant (user_id None) or reassign an existing user's role.

    tenant_id None targets the central tenant.
    """

    email: str
    role_id: str
    user_id: str | None = None
    name: str | None = None
    tenant_id: str | None = None


@dataclass(frozen=True)
class MembershipResult:
    user_id: str


@dataclass(frozen=True)
class ToggleActiveResult:
    user_id: str
    is_active: bool
