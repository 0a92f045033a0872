"""Tenant scope dependency: request host -> tenant id (None = central scope)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.core.config import get_settings
from hive_admin.infrastructure.persistence.database import get_db
from hive_admin.infrastructure.services.tenant_resolver import TenantResolver


async def get_tenant_scope(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> str | None:
    """Resolve the tenant from the forwarded host header, falling back to Host."""
    settings = get_settings()
    host = request.headers.get(settings.forwarded_host_header) or request.headers.get("host")
    return await TenantResolver(db, settings.central_tenant_slug).resolve_host(host)
