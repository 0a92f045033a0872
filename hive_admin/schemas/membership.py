"""Membership and account API schemas."""

from pydantic import BaseModel, Field


class MembershipWriteRequest(BaseModel):
    """Onboard a user (no user_id) or change an existing user's role in the current tenant."""

    email: str = Field(..., max_length=254)
    role_id: str
    user_id: str | None = None
    name: str | None = Field(default=None, max_length=120)


class MembershipResponse(BaseModel):
    user_id: str


class ToggleActiveRequest(BaseModel):
    is_active: bool


class ToggleActiveResponse(BaseModel):
    user_id: str
    is_active: bool


class EffectivePermissionsResponse(BaseModel):
    """Permission keys the caller holds in the resolved tenant scope."""

    user_id: str
    tenant_id: str | None
    permissions: list[str]
