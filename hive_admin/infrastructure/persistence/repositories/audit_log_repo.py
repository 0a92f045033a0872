"""Audit log repository. Append-only."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.models.audit_log import AuditLog


class AuditLogRepository:
    """Append-only audit log repository. No update/delete."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def append(
        self,
        *,
        tenant_id: str | None,
        actor_id: str | None,
        actor_type: str,
        action: str,
        entity: str,
        entity_id: str | None,
        meta: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Add one row to the session; it is written with the caller's transaction."""
        row = AuditLog(
            tenant_id=tenant_id,
            actor_id=actor_id,
            actor_type=actor_type,
            action=action,
            entity=entity,
            entity_id=entity_id,
            meta=meta,
        )
        self.db.add(row)
        return row
