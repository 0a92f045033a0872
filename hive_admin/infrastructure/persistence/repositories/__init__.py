"""Persistence repositories. Re-exports for dependency injection."""

from hive_admin.infrastructure.persistence.repositories.audit_log_repo import (
    AuditLogRepository,
)
from hive_admin.infrastructure.persistence.repositories.auditable_repo import (
    AuditableRepository,
)
from hive_admin.infrastructure.persistence.repositories.base import BaseRepository
from hive_admin.infrastructure.persistence.repositories.membership_repo import (
    MembershipRepository,
)
from hive_admin.infrastructure.persistence.repositories.permission_repo import (
    PermissionRepository,
)
from hive_admin.infrastructure.persistence.repositories.role_permission_repo import (
    RolePermissionRepository,
)
from hive_admin.infrastructure.persistence.repositories.role_repo import RoleRepository
from hive_admin.infrastructure.persistence.repositories.tenant_repo import (
    TenantRepository,
)
from hive_admin.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "AuditLogRepository",
    "AuditableRepository",
    "BaseRepository",
    "MembershipRepository",
    "PermissionRepository",
    "RolePermissionRepository",
    "RoleRepository",
    "TenantRepository",
    "UserRepository",
]
