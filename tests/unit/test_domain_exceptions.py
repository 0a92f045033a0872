"""Tests for domain exceptions (kind, error_code, details) and their HTTP status."""

import pytest

from hive_admin.core.exception_handlers import KIND_STATUS, status_for
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


def test_base_exception_defaults() -> None:
    exc = HiveException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "HiveException"
    assert exc.details == {}
    assert exc.kind is None
    assert exc.to_dict() == {
        "error": "HiveException",
        "kind": None,
        "message": "Something failed",
        "details": {},
    }


def test_authorization_exception_lists_required_keys() -> None:
    exc = AuthorizationException(required=["roles.create"], tenant_id="t1")
    assert exc.kind == ErrorKind.FORBIDDEN
    assert "roles.create" in exc.message
    assert exc.details == {"tenant_id": "t1", "required": ["roles.create"]}


def test_not_found_error_code_names_resource() -> None:
    exc = ResourceNotFoundException("role", "r1")
    assert exc.error_code == "ROLE_NOT_FOUND"
    assert exc.details == {"resource_type": "role", "resource_id": "r1"}


def test_key_in_use_codes() -> None:
    role = KeyInUseException("role", "ops", "t1")
    assert role.error_code == "ROLE_KEY_IN_USE"
    assert role.details == {"entity": "role", "key": "ops", "tenant_id": "t1"}
    email = KeyInUseException("user", "a@b.c", error_code="EMAIL_IN_USE")
    assert email.error_code == "EMAIL_IN_USE"
    assert "tenant_id" not in email.details


def test_self_protection_message_follows_action() -> None:
    assert "deactivate" in SelfProtectionException("CANNOT_DEACTIVATE_SELF", "u1").message
    assert "delete" in SelfProtectionException("CANNOT_DELETE_SELF", "u1").message


def test_entity_in_use_and_timeout() -> None:
    in_use = EntityInUseException("permission", "p1", 3)
    assert in_use.error_code == "PERMISSION_IN_USE"
    assert in_use.details["references"] == 3
    timeout = TransactionTimeoutException(10.0)
    assert timeout.kind == ErrorKind.TIMEOUT
    assert timeout.details == {"timeout_seconds": 10.0}


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (AuthenticationException(), 401),
        (AuthorizationException(), 403),
        (ResourceNotFoundException("role", "r1"), 404),
        (KeyInUseException("role", "ops"), 409),
        (ProtectedEntityException("CANNOT_DELETE_PROTECTED_ROLE", "no"), 409),
        (LastAdminStandingException("CANNOT_DELETE_LAST_USER", "no"), 409),
        (SelfProtectionException("CANNOT_DELETE_SELF", "u1"), 409),
        (EntityInUseException("permission", "p1", 1), 409),
        (ScopeMismatchException("ROLE_TENANT_MISMATCH", "r1", "t1", "t2"), 403),
        (ValidationException("bad", field="key"), 400),
        (TransactionTimeoutException(1.0), 503),
        (HiveException("plain"), 400),
    ],
)
def test_status_for_kind(exc: HiveException, status: int) -> None:
    assert status_for(exc) == status


def test_every_kind_has_a_status() -> None:
    assert set(KIND_STATUS) == set(ErrorKind)
