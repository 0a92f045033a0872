"""Shared enumerations.

Cross-cutting enums used by application and infrastructure (audit,
actor type). Domain enums (TenantStatus, RoleScope, MembershipStatus)
live in hive_admin.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ActorType(_ValuesMixin, str, Enum):
    """Who performed an audited action."""

    USER = "user"
    SYSTEM = "system"


class AuditAction(_ValuesMixin, str, Enum):
    """Audit log action names."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    PERMISSIONS_SYNCED = "permissions_synced"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    ROLE_NULLIFIED = "role_nullified"


class NoticeKind(_ValuesMixin, str, Enum):
    """Account notification kinds sent after membership mutations."""

    CREATED = "created"
    UPDATED = "updated"
    DEACTIVATED = "deactivated"
