"""Base repository: generic CRUD and lifecycle hooks."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.infrastructure.persistence.database import Base


class BaseRepository[ModelType: Base]:
    """Base repository with get_by_id, get_many, create, update, delete and hooks.

    Subclasses override _on_after_create, _on_after_update, _on_before_delete
    to emit audit rows.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(
        self, entity_id: str, *, for_update: bool = False
    ) -> ModelType | None:
        """Return a single record by primary key, or None.

        When for_update is True the row is locked until the transaction ends
        (SELECT ... FOR UPDATE; a no-op on SQLite).
        """
        model: Any = self.model
        stmt = select(self.model).where(model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(
        self, entity_ids: list[str], *, for_update: bool = False
    ) -> list[ModelType]:
        """Return all records whose id is in entity_ids (one query; missing ids are skipped)."""
        if not entity_ids:
            return []
        model: Any = self.model
        stmt = select(self.model).where(model.id.in_(entity_ids))
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and run _on_after_create hook."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_after_create(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """Flush changes to an attached record and run _on_after_update hook."""
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_after_update(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Run _on_before_delete hook then delete the record."""
        await self._on_before_delete(obj)
        await self.db.delete(obj)
        await self.db.flush()

    async def _on_after_create(self, obj: ModelType) -> None:
        """Override in subclasses to emit events."""

    async def _on_after_update(self, obj: ModelType) -> None:
        """Override in subclasses to emit events."""

    async def _on_before_delete(self, obj: ModelType) -> None:
        """Override in subclasses to emit events."""
