"""Schemas shared by the role, permission and membership endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

from hive_admin.application.dtos.bulk import BulkDeleteResult
from hive_admin.application.dtos.mutation import MutationResult


class MutationResponse(BaseModel):
    """Result of a create-or-update: which branch ran and the entity id."""

    mode: Literal["created", "updated"]
    id: str

    @classmethod
    def from_result(cls, result: MutationResult) -> "MutationResponse":
        return cls(mode=result.mode.value, id=result.id)


class BulkDeleteRequest(BaseModel):
    ids: list[str] = Field(..., max_length=1000)


class BulkDeleteResponse(BaseModel):
    """Best-effort bulk delete outcome; blocked maps id to reason code."""

    deleted_count: int
    blocked_count: int
    deleted_ids: list[str]
    blocked: dict[str, str]

    @classmethod
    def from_result(cls, result: BulkDeleteResult) -> "BulkDeleteResponse":
        return cls(
            deleted_count=result.deleted_count,
            blocked_count=result.blocked_count,
            deleted_ids=result.deleted_ids,
            blocked=result.blocked,
        )
