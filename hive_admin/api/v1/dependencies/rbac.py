"""Authorization gate and RBAC service dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.services.authorization_service import AuthorizationService
from hive_admin.core.config import get_settings
from hive_admin.core.policy import get_policy
from hive_admin.infrastructure.persistence.database import get_db, get_db_for_write
from hive_admin.infrastructure.services.factory import (
    RbacServices,
    build_authorization_service,
    build_rbac_services,
)

from .auth import get_current_user_id
from .tenant import get_tenant_scope


async def get_authorization_service(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthorizationService:
    """AuthorizationService on the read session; cache from app.state when Redis is enabled."""
    return build_authorization_service(
        db,
        settings=get_settings(),
        cache=getattr(request.app.state, "cache", None),
    )


def require_any_permission(*keys: str):
    """Dependency factory: authenticated actor holding any of keys in the request scope.

    This is the read-path gate; the services re-check inside their transaction.
    """

    async def _require(
        user_id: Annotated[str, Depends(get_current_user_id)],
        tenant_id: Annotated[str | None, Depends(get_tenant_scope)],
        authz: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> str:
        await authz.require_any(user_id, tenant_id, list(keys))
        return user_id

    return _require


async def get_rbac_services(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_for_write)],
) -> RbacServices:
    """Role, permission and membership services over the write session."""
    return build_rbac_services(
        db,
        settings=get_settings(),
        policy=get_policy(),
        cache=getattr(request.app.state, "cache", None),
        dispatcher=getattr(request.app.state, "dispatcher", None),
    )
