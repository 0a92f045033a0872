"""User repository (global identities)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.models.membership import Membership
from hive_admin.infrastructure.persistence.models.user import User
from hive_admin.infrastructure.persistence.repositories.auditable_repo import (
    AuditableRepository,
)
from hive_admin.shared.enums import AuditAction

if TYPE_CHECKING:
    from hive_admin.application.interfaces.services import IAuditService


def normalize_email(email: str) -> str:
    """Lower-case and strip an email address (storage form)."""
    return email.strip().lower()


class UserRepository(AuditableRepository[User]):
    """User CRUD with audit; deletion removes the user's memberships explicitly."""

    def __init__(
        self, db: AsyncSession, audit_service: IAuditService | None = None
    ) -> None:
        super().__init__(db, User, audit_service)

    def _get_entity_type(self) -> str:
        return "user"

    def _serialize_for_audit(self, obj: User) -> dict[str, Any]:
        return {"is_active": obj.is_active}

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def create_user(self, email: str, name: str | None = None) -> User:
        return await self.create(
            User(email=normalize_email(email), name=name, is_active=True)
        )

    async def delete_with_memberships(self, user: User) -> None:
        """Delete every membership of the user, then the user."""
        await self.db.execute(delete(Membership).where(Membership.user_id == user.id))
        await self.delete(user)

    async def set_active(self, user: User, is_active: bool) -> User:
        user.is_active = is_active
        await self.db.flush()
        await self.emit_custom_audit(
            user, AuditAction.ACTIVATED if is_active else AuditAction.DEACTIVATED
        )
        return user
