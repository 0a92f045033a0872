"""Persistence models: ORM entities and mixins."""

from hive_admin.infrastructure.persistence.models.audit_log import AuditLog
from hive_admin.infrastructure.persistence.models.membership import Membership
from hive_admin.infrastructure.persistence.models.permission import (
    Permission,
    RolePermission,
)
from hive_admin.infrastructure.persistence.models.role import Role
from hive_admin.infrastructure.persistence.models.tenant import Tenant, TenantDomain
from hive_admin.infrastructure.persistence.models.user import User

__all__ = [
    "AuditLog",
    "Membership",
    "Permission",
    "Role",
    "RolePermission",
    "Tenant",
    "TenantDomain",
    "User",
]
