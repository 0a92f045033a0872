"""Service interfaces (ports) for the application layer.

Protocols define contracts the use-case services depend on (DIP);
infrastructure provides the implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from hive_admin.shared.enums import AuditAction

if TYPE_CHECKING:
    from hive_admin.application.dtos.notice import AccountNotice


class IPermissionResolver(Protocol):
    """Computes the effective permission keys for an actor in a scope."""

    async def get_user_permissions(
        self, user_id: str, tenant_id: str | None
    ) -> set[str]:
        """Return permission keys; empty set when the actor has no active membership."""
        ...


class ICacheService(Protocol):
    """Key/value cache with TTL (Redis in production)."""

    def is_available(self) -> bool: ...

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def delete_pattern(self, pattern: str) -> int: ...


class INotificationService(Protocol):
    """Sends plain notifications (email delivery is an external concern)."""

    async def send(self, to_emails: list[str], subject: str, body: str) -> None: ...


class IAuditService(Protocol):
    """Appends audit rows in the caller's transaction."""

    async def emit_audit_event(
        self,
        *,
        tenant_id: str | None,
        entity_type: str,
        action: AuditAction,
        entity_id: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...


class INotificationDispatcher(Protocol):
    """Fire-and-forget dispatch of account notices (never raises into the caller)."""

    def dispatch(self, notice: AccountNotice) -> Any: ...
