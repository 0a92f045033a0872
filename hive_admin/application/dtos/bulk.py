"""Bulk delete result shared by roles, permissions, and memberships."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BulkDeleteResult:
    """Outcome of a best-effort bulk delete.

    deleted_count + blocked_count equals the number of distinct ids requested.
    blocked maps each blocked id to a reason code (e.g. CANNOT_DELETE_PROTECTED_ROLE).
    """

    deleted_ids: list[str] = field(default_factory=list)
    blocked: dict[str, str] = field(default_factory=dict)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_ids)

    @property
    def blocked_count(self) -> int:
        return len(self.blocked)

    @property
    def blocked_ids(self) -> list[str]:
        return list(self.blocked)
