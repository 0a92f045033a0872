"""Permissions API. Permissions are global; checks run in central scope."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from hive_admin.api.v1.dependencies import get_rbac_services, get_current_user_id
from hive_admin.application.dtos.permission import PermissionInput
from hive_admin.core.limiter import limit_writes
from hive_admin.infrastructure.services.factory import RbacServices
from hive_admin.schemas.common import BulkDeleteRequest, BulkDeleteResponse, MutationResponse
from hive_admin.schemas.permission import PermissionResponse, PermissionWriteRequest

router = APIRouter()

Services = Annotated[RbacServices, Depends(get_rbac_services)]
ActorId = Annotated[str, Depends(get_current_user_id)]


@router.get("", response_model=list[PermissionResponse])
async def list_permissions(
    actor_id: ActorId,
    services: Services,
    skip: int = Query(0, ge=0),
    limit: int = Query(500, ge=1, le=1000),
) -> list[PermissionResponse]:
    permissions = await services.permissions.list_permissions(actor_id, skip=skip, limit=limit)
    return [PermissionResponse.model_validate(p) for p in permissions]


@router.post("", response_model=MutationResponse, status_code=201)
@limit_writes
async def create_permission(
    request: Request,
    body: PermissionWriteRequest,
    actor_id: ActorId,
    services: Services,
) -> MutationResponse:
    result = await services.permissions.create_or_update_permission(
        actor_id, PermissionInput(name=body.name, key=body.key)
    )
    return MutationResponse.from_result(result)


@router.put("/{permission_id}", response_model=MutationResponse)
@limit_writes
async def update_permission(
    request: Request,
    permission_id: str,
    body: PermissionWriteRequest,
    actor_id: ActorId,
    services: Services,
) -> MutationResponse:
    result = await services.permissions.create_or_update_permission(
        actor_id, PermissionInput(id=permission_id, name=body.name, key=body.key)
    )
    return MutationResponse.from_result(result)


@router.delete("/{permission_id}", status_code=204)
@limit_writes
async def delete_permission(
    request: Request,
    permission_id: str,
    actor_id: ActorId,
    services: Services,
) -> None:
    await services.permissions.delete_permission(actor_id, permission_id)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
@limit_writes
async def bulk_delete_permissions(
    request: Request,
    body: BulkDeleteRequest,
    actor_id: ActorId,
    services: Services,
) -> BulkDeleteResponse:
    result = await services.permissions.delete_permissions(actor_id, body.ids)
    return BulkDeleteResponse.from_result(result)
