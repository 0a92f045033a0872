"""Role API schemas."""

from pydantic import BaseModel, ConfigDict, Field

from hive_admin.domain.enums import RoleScope


class RoleWriteRequest(BaseModel):
    """Request body for creating or updating a role; permission_ids replaces the role's set."""

    key: str = Field(..., max_length=64)
    name: str = Field(..., max_length=120)
    scope: RoleScope | None = None
    permission_ids: list[str] = Field(default_factory=list, max_length=1000)


class RoleResponse(BaseModel):
    """Role list item."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str | None
    key: str
    name: str
    scope: RoleScope
    is_protected: bool


class RolePermissionsResponse(BaseModel):
    role_id: str
    permission_ids: list[str]
