"""Bulk delete coordinator: best-effort deletes with per-item blocking.

One transaction per batch: authorize, load every requested id in one
query, partition into deletable and blocked, then execute the deletable
subset. A blocked item never aborts the batch; any error during execution
rolls the whole transaction back so nothing is deleted.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from hive_admin.application.dtos.bulk import BulkDeleteResult
from hive_admin.infrastructure.persistence.database import transaction
from hive_admin.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND = "NOT_FOUND"


class BulkDeletePlan[ItemT](Protocol):
    """Entity-specific steps the coordinator drives."""

    entity: str

    async def authorize(self) -> None:
        """Raise if the actor may not delete this entity type in scope."""
        ...

    async def load(self, ids: list[str]) -> dict[str, ItemT]:
        """Return current state keyed by id (locked for update); missing ids are omitted."""
        ...

    async def blocked_reason(self, item: ItemT, accepted: list[ItemT]) -> str | None:
        """Return a reason code if item must not be deleted, given items accepted so far."""
        ...

    async def execute(self, items: list[ItemT]) -> None:
        """Delete the accepted items."""
        ...


def distinct_ids(ids: Iterable[str]) -> list[str]:
    """Drop empty and duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(i for i in ids if i))


class BulkDeleteCoordinator:
    """Runs a BulkDeletePlan inside a single timed transaction."""

    def __init__(self, db: AsyncSession, timeout_seconds: float) -> None:
        self.db = db
        self.timeout_seconds = timeout_seconds

    async def run[ItemT](
        self, ids: Iterable[str], plan: BulkDeletePlan[ItemT]
    ) -> BulkDeleteResult:
        """Delete what can be deleted; report the rest as blocked with a reason.

        Raises:
            AuthorizationException: From plan.authorize (whole batch forbidden).
            TransactionTimeoutException: If the batch exceeded its timeout (nothing deleted).
        """
        requested = distinct_ids(ids)
        if not requested:
            return BulkDeleteResult()

        deleted_ids: list[str] = []
        blocked: dict[str, str] = {}
        async with transaction(self.db, self.timeout_seconds):
            await plan.authorize()
            loaded = await plan.load(requested)
            accepted: list[ItemT] = []
            for entity_id in requested:
                item = loaded.get(entity_id)
                if item is None:
                    blocked[entity_id] = NOT_FOUND
                    continue
                reason = await plan.blocked_reason(item, accepted)
                if reason is not None:
                    blocked[entity_id] = reason
                    continue
                accepted.append(item)
                deleted_ids.append(entity_id)
            if accepted:
                await plan.execute(accepted)

        if blocked:
            logger.info(
                "Bulk delete %s: blocked %d of %d (%s)",
                plan.entity,
                len(blocked),
                len(requested),
                blocked,
            )
        logger.info(
            "Bulk delete %s: deleted %d of %d", plan.entity, len(deleted_ids), len(requested)
        )
        return BulkDeleteResult(deleted_ids=deleted_ids, blocked=blocked)
