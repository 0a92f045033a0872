"""Roles API: list, create, update, delete, bulk delete, role permissions (scope from host)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from hive_admin.api.v1.dependencies import (
    get_rbac_services,
    get_tenant_scope,
    require_any_permission,
)
from hive_admin.application.dtos.role import RoleInput
from hive_admin.core.limiter import limit_writes
from hive_admin.infrastructure.services.factory import RbacServices
from hive_admin.schemas.common import BulkDeleteRequest, BulkDeleteResponse, MutationResponse
from hive_admin.schemas.role import RolePermissionsResponse, RoleResponse, RoleWriteRequest

router = APIRouter()

TenantScope = Annotated[str | None, Depends(get_tenant_scope)]
Services = Annotated[RbacServices, Depends(get_rbac_services)]


def _role_input(
    body: RoleWriteRequest, tenant_id: str | None, role_id: str | None = None
) -> RoleInput:
    return RoleInput(
        id=role_id,
        name=body.name,
        key=body.key,
        tenant_id=tenant_id,
        scope=body.scope,
        permission_ids=frozenset(body.permission_ids),
    )


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("roles.view"))],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> list[RoleResponse]:
    roles = await services.roles.list_roles(actor_id, tenant_id, skip=skip, limit=limit)
    return [RoleResponse.model_validate(r) for r in roles]


@router.post("", response_model=MutationResponse, status_code=201)
@limit_writes
async def create_role(
    request: Request,
    body: RoleWriteRequest,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("roles.create"))],
) -> MutationResponse:
    """Create a role in the current scope and set its permissions."""
    result = await services.roles.create_or_update_role(actor_id, _role_input(body, tenant_id))
    return MutationResponse.from_result(result)


@router.put("/{role_id}", response_model=MutationResponse)
@limit_writes
async def update_role(
    request: Request,
    role_id: str,
    body: RoleWriteRequest,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("roles.update"))],
) -> MutationResponse:
    """Rename a role and replace its permission set."""
    result = await services.roles.create_or_update_role(
        actor_id, _role_input(body, tenant_id, role_id)
    )
    return MutationResponse.from_result(result)


@router.delete("/{role_id}", status_code=204)
@limit_writes
async def delete_role(
    request: Request,
    role_id: str,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("roles.delete"))],
) -> None:
    await services.roles.delete_role(actor_id, role_id, tenant_id)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
@limit_writes
async def bulk_delete_roles(
    request: Request,
    body: BulkDeleteRequest,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("roles.delete"))],
) -> BulkDeleteResponse:
    """Delete every deletable role; protected or foreign roles come back in blocked."""
    result = await services.roles.delete_roles(actor_id, body.ids, tenant_id)
    return BulkDeleteResponse.from_result(result)


@router.get("/{role_id}/permissions", response_model=RolePermissionsResponse)
async def get_role_permissions(
    role_id: str,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("roles.view"))],
) -> RolePermissionsResponse:
    permission_ids = await services.roles.get_role_permission_ids(actor_id, role_id, tenant_id)
    return RolePermissionsResponse(role_id=role_id, permission_ids=sorted(permission_ids))
