"""DTOs for permission use cases (no dependency on ORM)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PermissionInput:
    """Create (id None) or update (id set) a permission."""

    name: str
    key: str
    id: str | None = None


@dataclass(frozen=True)
class PermissionResult:
    """Permission read-model."""

    id: str
    key: str
    name: str
    is_system: bool
