"""Domain enumerations for tenants, roles, and memberships."""

from enum import Enum


class TenantStatus(str, Enum):
    """Tenant lifecycle status.

    A SUSPENDED tenant keeps its data but its memberships grant no permissions.
    """

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class RoleScope(str, Enum):
    """Where a role lives: CENTRAL roles have no tenant, TENANT roles belong to one."""

    CENTRAL = "CENTRAL"
    TENANT = "TENANT"

    @classmethod
    def values(cls) -> list[str]:
        return [scope.value for scope in cls]

    @classmethod
    def for_tenant(cls, tenant_id: str | None) -> "RoleScope":
        """Return the scope implied by a role's tenant_id."""
        return cls.CENTRAL if tenant_id is None else cls.TENANT


class MembershipStatus(str, Enum):
    """Membership activation status. Only ACTIVE memberships grant permissions."""

    ACTIVE = "ACTIVE"
    INVITED = "INVITED"
    DISABLED = "DISABLED"

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]
