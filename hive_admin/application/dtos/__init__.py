"""Application DTOs (frozen dataclasses, no ORM dependency)."""

from hive_admin.application.dtos.bulk import BulkDeleteResult
from hive_admin.application.dtos.membership import (
    MembershipInput,
    MembershipResult,
    ToggleActiveResult,
)
from hive_admin.application.dtos.mutation import MutationMode, MutationResult
from hive_admin.application.dtos.notice import AccountNotice
from hive_admin.application.dtos.permission import PermissionInput, PermissionResult
from hive_admin.application.dtos.role import RoleInput, RoleResult

__all__ = [
    "AccountNotice",
    "BulkDeleteResult",
    "MembershipInput",
    "MembershipResult",
    "MutationMode",
    "MutationResult",
    "PermissionInput",
    "PermissionResult",
    "RoleInput",
    "RoleResult",
    "ToggleActiveResult",
]
