"""transaction() deadlines and bulk batches that fail mid-way roll back completely."""

import asyncio

import pytest
from sqlalchemy import select

from hive_admin.application.services.bulk_delete import BulkDeleteCoordinator
from hive_admin.domain.exceptions import TransactionTimeoutException
from hive_admin.infrastructure.persistence.database import transaction
from hive_admin.infrastructure.persistence.models import Permission
from hive_admin.infrastructure.persistence.repositories import PermissionRepository


def _permission_keys(session):
    async def fetch():
        return set((await session.scalars(select(Permission.key))).all())

    return fetch()


async def _add_permissions(session, *keys):
    async with session.begin():
        rows = [Permission(key=key, name=key.title()) for key in keys]
        session.add_all(rows)
    return [row.id for row in rows]


class _FailingPermissionPlan:
    """Deletes the first accepted permission, then fails."""

    entity = "permission"

    def __init__(self, repo: PermissionRepository) -> None:
        self._repo = repo

    async def authorize(self) -> None:
        return None

    async def load(self, ids):
        return {p.id: p for p in await self._repo.get_many(ids, for_update=True)}

    async def blocked_reason(self, item, accepted):
        return None

    async def execute(self, items):
        await self._repo.delete(items[0])
        raise RuntimeError("storage failure")


async def test_timeout_rolls_back_writes(session_factory, read) -> None:
    async with session_factory() as session:
        with pytest.raises(TransactionTimeoutException) as exc_info:
            async with transaction(session, 0.05):
                session.add(Permission(key="reports.export", name="Export"))
                await session.flush()
                await asyncio.sleep(1)

    assert exc_info.value.error_code == "TRANSACTION_TIMEOUT"
    assert await read(_permission_keys) == set()


async def test_transaction_commits_within_deadline(session_factory, read) -> None:
    async with session_factory() as session:
        async with transaction(session, 5):
            session.add(Permission(key="reports.export", name="Export"))

    assert await read(_permission_keys) == {"reports.export"}


async def test_failed_bulk_batch_deletes_nothing(session_factory, read) -> None:
    ids = await read(lambda s: _add_permissions(s, "reports.export", "reports.print"))

    async with session_factory() as session:
        coordinator = BulkDeleteCoordinator(session, 5)
        with pytest.raises(RuntimeError):
            await coordinator.run(ids, _FailingPermissionPlan(PermissionRepository(session)))

    assert await read(_permission_keys) == {"reports.export", "reports.print"}
