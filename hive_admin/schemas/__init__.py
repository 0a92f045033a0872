"""Pydantic request/response schemas for the API."""

from hive_admin.schemas.common import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    MutationResponse,
)
from hive_admin.schemas.health import HealthResponse
from hive_admin.schemas.membership import (
    EffectivePermissionsResponse,
    MembershipResponse,
    MembershipWriteRequest,
    ToggleActiveRequest,
    ToggleActiveResponse,
)
from hive_admin.schemas.permission import PermissionResponse, PermissionWriteRequest
from hive_admin.schemas.role import (
    RolePermissionsResponse,
    RoleResponse,
    RoleWriteRequest,
)

__all__ = [
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "EffectivePermissionsResponse",
    "HealthResponse",
    "MembershipResponse",
    "MembershipWriteRequest",
    "MutationResponse",
    "PermissionResponse",
    "PermissionWriteRequest",
    "RolePermissionsResponse",
    "RoleResponse",
    "RoleWriteRequest",
    "ToggleActiveRequest",
    "ToggleActiveResponse",
]
