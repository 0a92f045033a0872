"""Permission API schemas."""

from pydantic import BaseModel, ConfigDict, Field


class PermissionWriteRequest(BaseModel):
    """Request body for creating or updating a permission."""

    key: str = Field(..., max_length=64)
    name: str = Field(..., max_length=120)


class PermissionResponse(BaseModel):
    """Permission list item; is_system marks reserved keys."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    name: str
    is_system: bool
