"""Domain exceptions for the RBAC engine.

Each exception carries an ErrorKind (the stable category callers map to
messages and HTTP statuses) and an error_code naming the specific reason
(e.g. CANNOT_CHANGE_PROTECTED_KEY). Presentation layer maps them to HTTP
responses in hive_admin.core.exception_handlers.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error categories exposed to callers."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    KEY_IN_USE = "KEY_IN_USE"
    PROTECTED_ENTITY = "PROTECTED_ENTITY"
    LAST_ADMIN_STANDING = "LAST_ADMIN_STANDING"
    SELF_PROTECTION = "SELF_PROTECTION"
    IN_USE = "IN_USE"
    SCOPE_MISMATCH = "SCOPE_MISMATCH"
    VALIDATION = "VALIDATION"
    TIMEOUT = "TIMEOUT"


class HiveException(Exception):
    """Base exception for all hive-admin domain errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable reason code.
        details: Additional error context (e.g. field, resource_id).
        kind: Error category; None on the base class (callers fall back to a generic message).
    """

    kind: ErrorKind | None = None

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error responses."""
        return {
            "error": self.error_code,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(HiveException):
    """Raised when input validation fails (e.g. invalid key format or unknown ids)."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(HiveException):
    """Raised when no valid actor identity is present."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, "UNAUTHORIZED")


class AuthorizationException(HiveException):
    """Raised when the actor lacks every one of the required permission keys in scope."""

    kind = ErrorKind.FORBIDDEN

    def __init__(
        self,
        required: list[str] | None = None,
        tenant_id: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with the permission keys that would have satisfied the check.

        Args:
            required: Permission keys of which at least one was needed.
            tenant_id: Scope of the check (None for central scope).
            message: Human-readable message; extended with required keys when given.
        """
        details: dict[str, Any] = {"tenant_id": tenant_id}
        if required:
            message = f"Permission denied: requires one of {', '.join(required)}"
            details["required"] = list(required)
        super().__init__(message, "FORBIDDEN_INSUFFICIENT_PERMISSIONS", details)


class ResourceNotFoundException(HiveException):
    """Raised when a referenced role, permission, membership, user or tenant does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            f"{resource_type.upper()}_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class KeyInUseException(HiveException):
    """Raised on a uniqueness conflict (role key in scope, permission key, user email)."""

    kind = ErrorKind.KEY_IN_USE

    def __init__(
        self,
        entity: str,
        key: str,
        tenant_id: str | None = None,
        error_code: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"entity": entity, "key": key}
        if entity == "role":
            details["tenant_id"] = tenant_id
        super().__init__(
            f"{entity} key already in use: {key}",
            error_code or f"{entity.upper()}_KEY_IN_USE",
            details,
        )


class ProtectedEntityException(HiveException):
    """Raised on a disallowed structural change to a protected role or system permission."""

    kind = ErrorKind.PROTECTED_ENTITY

    def __init__(
        self, error_code: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, error_code, details)


class LastAdminStandingException(HiveException):
    """Raised when an operation would leave a protected role or a tenant with no active holder."""

    kind = ErrorKind.LAST_ADMIN_STANDING

    def __init__(
        self, error_code: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, error_code, details)


class SelfProtectionException(HiveException):
    """Raised when an actor targets their own account for delete or deactivate."""

    kind = ErrorKind.SELF_PROTECTION

    def __init__(self, error_code: str, user_id: str) -> None:
        action = "deactivate" if error_code == "CANNOT_DEACTIVATE_SELF" else "delete"
        super().__init__(
            f"You cannot {action} your own account",
            error_code,
            {"user_id": user_id},
        )


class EntityInUseException(HiveException):
    """Raised when a delete is blocked because the entity is still referenced."""

    kind = ErrorKind.IN_USE

    def __init__(self, entity: str, entity_id: str, references: int) -> None:
        super().__init__(
            f"{entity} {entity_id} is still referenced ({references})",
            f"{entity.upper()}_IN_USE",
            {"entity": entity, "entity_id": entity_id, "references": references},
        )


class ScopeMismatchException(HiveException):
    """Raised when a role's scope or tenant does not match the operation's scope."""

    kind = ErrorKind.SCOPE_MISMATCH

    def __init__(
        self,
        error_code: str,
        role_id: str | None,
        expected_tenant_id: str | None,
        actual_tenant_id: str | None,
    ) -> None:
        super().__init__(
            "Role does not belong to the requested scope",
            error_code,
            {
                "role_id": role_id,
                "expected_tenant_id": expected_tenant_id,
                "actual_tenant_id": actual_tenant_id,
            },
        )


class TransactionTimeoutException(HiveException):
    """Raised when a mutation transaction exceeds its timeout and was rolled back."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Transaction timed out after {timeout_seconds} seconds and was rolled back",
            "TRANSACTION_TIMEOUT",
            {"timeout_seconds": timeout_seconds},
        )
