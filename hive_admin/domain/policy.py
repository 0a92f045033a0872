"""Protected-entity policy and permission checks.

ProtectedEntityPolicy is the single registry of reserved role keys and
system permission keys; every mutation path asks it instead of comparing
literals. has_any is the single place coarse override keys are honoured.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

# Coarse keys that satisfy any fine-grained requirement in their domain
# (domain = prefix of the required key before the first ".").
COARSE_OVERRIDES: dict[str, frozenset[str]] = {
    "users": frozenset({"manage_users", "manage_security"}),
    "roles": frozenset({"manage_roles", "manage_security"}),
    "permissions": frozenset({"manage_roles", "manage_security"}),
}


@dataclass(frozen=True)
class ProtectedEntityPolicy:
    """Immutable registry of protected role keys and system permission keys."""

    central_superadmin_key: str
    tenant_superadmin_key: str
    system_permission_keys: frozenset[str]
    system_permission_prefixes: tuple[str, ...] = ()

    @property
    def protected_role_keys(self) -> frozenset[str]:
        return frozenset({self.central_superadmin_key, self.tenant_superadmin_key})

    def is_protected_role_key(self, key: str | None) -> bool:
        """Return True for the built-in super-administrator role keys."""
        return key is not None and key in self.protected_role_keys

    def is_system_permission_key(self, key: str | None) -> bool:
        """Return True if key is reserved exactly or starts with a reserved prefix."""
        if not key:
            return False
        if key in self.system_permission_keys:
            return True
        return any(key.startswith(prefix) for prefix in self.system_permission_prefixes)


def permission_domain(key: str) -> str:
    """Return the domain of a permission key ("roles.create" -> "roles")."""
    return key.split(".", 1)[0]


def has_any(effective: Iterable[str], required: Iterable[str]) -> bool:
    """Return True if effective holds any required key or a coarse override for its domain.

    Args:
        effective: Permission keys the actor holds in scope.
        required: Keys of which at least one satisfies the operation.
    """
    held = effective if isinstance(effective, (set, frozenset)) else set(effective)
    for key in required:
        if key in held:
            return True
        overrides = COARSE_OVERRIDES.get(permission_domain(key))
        if overrides and not overrides.isdisjoint(held):
            return True
    return False
