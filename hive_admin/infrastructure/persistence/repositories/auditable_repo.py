"""Auditable repository: automatic audit row emission on CRUD.

Extends BaseRepository; subclasses implement _get_entity_type and
_serialize_for_audit. Audit service is injected; when it is None, no rows
are written.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any

from hive_admin.infrastructure.persistence.database import Base
from hive_admin.infrastructure.persistence.repositories.base import BaseRepository
from hive_admin.shared.enums import AuditAction
from hive_admin.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hive_admin.application.interfaces.services import IAuditService

_logger = get_logger(__name__)


class AuditableRepository[ModelType: Base](BaseRepository[ModelType]):
    """Repository that emits audit rows on create/update/delete and on request."""

    def __init__(
        self,
        db: AsyncSession,
        model: type[ModelType],
        audit_service: IAuditService | None = None,
    ) -> None:
        super().__init__(db, model)
        self._audit_service = audit_service

    @abstractmethod
    def _get_entity_type(self) -> str:
        """Return entity type for audit (e.g. 'role')."""
        ...

    def _get_tenant_id(self, obj: ModelType) -> str | None:
        """Return tenant_id from the entity (None for central/global entities)."""
        return getattr(obj, "tenant_id", None)

    @abstractmethod
    def _serialize_for_audit(self, obj: ModelType) -> dict[str, Any]:
        """Return dict representation for the audit payload."""
        ...

    async def _emit_audit_event(
        self,
        action: AuditAction,
        obj: ModelType,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Emit one audit row. No-op if the service is not set; failures are logged."""
        if self._audit_service is None:
            return
        payload = self._serialize_for_audit(obj)
        if metadata:
            payload.update(metadata)
        try:
            await self._audit_service.emit_audit_event(
                tenant_id=self._get_tenant_id(obj),
                entity_type=self._get_entity_type(),
                action=action,
                entity_id=getattr(obj, "id", None),
                metadata=payload,
            )
        except Exception as e:
            _logger.warning(
                "Failed to emit audit event for %s.%s: %s",
                self._get_entity_type(),
                action.value,
                str(e),
                exc_info=True,
            )

    async def _on_after_create(self, obj: ModelType) -> None:
        await super()._on_after_create(obj)
        await self._emit_audit_event(AuditAction.CREATED, obj)

    async def _on_after_update(self, obj: ModelType) -> None:
        await super()._on_after_update(obj)
        await self._emit_audit_event(AuditAction.UPDATED, obj)

    async def _on_before_delete(self, obj: ModelType) -> None:
        await super()._on_before_delete(obj)
        await self._emit_audit_event(AuditAction.DELETED, obj)

    async def emit_custom_audit(
        self,
        obj: ModelType,
        action: AuditAction,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Emit a custom audit row (e.g. permissions_synced, deactivated)."""
        await self._emit_audit_event(action, obj, metadata)
