"""Memberships API: onboard/reassign, delete, bulk delete, activate/deactivate."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from hive_admin.api.v1.dependencies import (
    get_rbac_services,
    get_tenant_scope,
    require_any_permission,
)
from hive_admin.application.dtos.membership import MembershipInput
from hive_admin.core.limiter import limit_writes
from hive_admin.infrastructure.services.factory import RbacServices
from hive_admin.schemas.common import BulkDeleteRequest, BulkDeleteResponse
from hive_admin.schemas.membership import (
    MembershipResponse,
    MembershipWriteRequest,
    ToggleActiveRequest,
    ToggleActiveResponse,
)

router = APIRouter()

TenantScope = Annotated[str | None, Depends(get_tenant_scope)]
Services = Annotated[RbacServices, Depends(get_rbac_services)]


@router.post("", response_model=MembershipResponse)
@limit_writes
async def save_membership(
    request: Request,
    body: MembershipWriteRequest,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[
        str, Depends(require_any_permission("users.create", "users.update"))
    ],
) -> MembershipResponse:
    """Onboard a user into the current tenant, or change an existing user's role."""
    result = await services.memberships.create_or_update_membership(
        actor_id,
        MembershipInput(
            email=body.email,
            role_id=body.role_id,
            user_id=body.user_id,
            name=body.name,
            tenant_id=tenant_id,
        ),
    )
    return MembershipResponse(user_id=result.user_id)


@router.delete("/{user_id}", status_code=204)
@limit_writes
async def delete_membership(
    request: Request,
    user_id: str,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("users.delete"))],
) -> None:
    await services.memberships.delete_membership(actor_id, user_id, tenant_id)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
@limit_writes
async def bulk_delete_memberships(
    request: Request,
    body: BulkDeleteRequest,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("users.delete"))],
) -> BulkDeleteResponse:
    """ids are user ids; each is removed from the current tenant or reported as blocked."""
    result = await services.memberships.delete_memberships(actor_id, body.ids, tenant_id)
    return BulkDeleteResponse.from_result(result)


@router.post("/{user_id}/active", response_model=ToggleActiveResponse)
@limit_writes
async def toggle_active(
    request: Request,
    user_id: str,
    body: ToggleActiveRequest,
    tenant_id: TenantScope,
    services: Services,
    actor_id: Annotated[str, Depends(require_any_permission("users.update"))],
) -> ToggleActiveResponse:
    result = await services.memberships.toggle_active(
        actor_id, user_id, body.is_active, tenant_id
    )
    return ToggleActiveResponse(user_id=result.user_id, is_active=result.is_active)
