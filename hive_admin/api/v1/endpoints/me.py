"""Current actor endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hive_admin.api.v1.dependencies import (
    get_authorization_service,
    get_current_user_id,
    get_tenant_scope,
)
from hive_admin.application.services.authorization_service import AuthorizationService
from hive_admin.schemas.membership import EffectivePermissionsResponse

router = APIRouter()


@router.get("/permissions", response_model=EffectivePermissionsResponse)
async def my_permissions(
    user_id: Annotated[str, Depends(get_current_user_id)],
    tenant_id: Annotated[str | None, Depends(get_tenant_scope)],
    authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> EffectivePermissionsResponse:
    """Effective permission keys of the caller in the request's tenant scope."""
    permissions = await authz.get_user_permissions(user_id, tenant_id)
    return EffectivePermissionsResponse(
        user_id=user_id, tenant_id=tenant_id, permissions=sorted(permissions)
    )
