"""DTOs for role use cases (no dependency on ORM)."""

from dataclasses import dataclass, field

from hive_admin.domain.enums import RoleScope


@dataclass(frozen=True)
class RoleInput:
    """Create (id None) or update (id set) a role and replace its permission set."""

    name: str
    key: str
    tenant_id: str | None = None
    id: str | None = None
    scope: RoleScope | None = None
    permission_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RoleResult:
    """Role read-model."""

    id: str
    tenant_id: str | None
    key: str
    name: str
    scope: RoleScope
    is_protected: bool
