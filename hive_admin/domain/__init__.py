"""Domain layer: enums, exceptions, and the protected-entity policy.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from hive_admin.domain.enums import MembershipStatus, RoleScope, TenantStatus
from hive_admin.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    EntityInUseException,
    ErrorKind,
    HiveException,
    KeyInUseException,
    LastAdminStandingException,
    ProtectedEntityException,
    ResourceNotFoundException,
    ScopeMismatchException,
    SelfProtectionException,
    TransactionTimeoutException,
    ValidationException,
)
from hive_admin.domain.policy import ProtectedEntityPolicy, has_any

__all__ = [
    "AuthenticationException",
    "AuthorizationException",
    "EntityInUseException",
    "ErrorKind",
    "HiveException",
    "KeyInUseException",
    "LastAdminStandingException",
    "MembershipStatus",
    "ProtectedEntityException",
    "ProtectedEntityPolicy",
    "ResourceNotFoundException",
    "RoleScope",
    "ScopeMismatchException",
    "SelfProtectionException",
    "TenantStatus",
    "TransactionTimeoutException",
    "ValidationException",
    "has_any",
]
