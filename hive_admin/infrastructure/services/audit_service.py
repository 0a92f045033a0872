"""Audit service: appends audit_log rows in the caller's session (same transaction)."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.repositories.audit_log_repo import (
    AuditLogRepository,
)
from hive_admin.shared.context import get_current_actor_id, get_current_actor_type
from hive_admin.shared.enums import AuditAction


class AuditService:
    """Implements IAuditService. Actor comes from the request context."""

    def __init__(self, db: AsyncSession) -> None:
        self._repo = AuditLogRepository(db)

    async def emit_audit_event(
        self,
        *,
        tenant_id: str | None,
        entity_type: str,
        action: AuditAction,
        entity_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        await self._repo.append(
            tenant_id=tenant_id,
            actor_id=get_current_actor_id(),
            actor_type=get_current_actor_type().value,
            action=action.value,
            entity=entity_type,
            entity_id=entity_id,
            meta=metadata,
        )
