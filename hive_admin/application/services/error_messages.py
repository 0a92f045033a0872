"""Human-readable messages per error kind (one message per kind, generic fallback)."""

from hive_admin.domain.exceptions import ErrorKind, HiveException

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."

ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNAUTHENTICATED: "You need to sign in to continue.",
    ErrorKind.FORBIDDEN: "You do not have permission to perform this action.",
    ErrorKind.NOT_FOUND: "The requested item could not be found.",
    ErrorKind.KEY_IN_USE: "That key is already in use. Choose a different one.",
    ErrorKind.PROTECTED_ENTITY: "This is a protected system item and cannot be changed this way.",
    ErrorKind.LAST_ADMIN_STANDING: "This would leave no active administrator. Assign another one first.",
    ErrorKind.SELF_PROTECTION: "You cannot remove or deactivate your own account.",
    ErrorKind.IN_USE: "This item is still in use and cannot be deleted.",
    ErrorKind.SCOPE_MISMATCH: "That role does not belong to this workspace.",
    ErrorKind.VALIDATION: "Some of the submitted values are invalid.",
    ErrorKind.TIMEOUT: "The operation took too long and was cancelled. Nothing was changed.",
}


def message_for(kind: ErrorKind | str | None) -> str:
    """Return the message for kind; unknown or missing kinds get the generic message."""
    if kind is None:
        return GENERIC_ERROR_MESSAGE
    try:
        return ERROR_MESSAGES[ErrorKind(kind)]
    except (ValueError, KeyError):
        return GENERIC_ERROR_MESSAGE


def message_for_exception(exc: BaseException) -> str:
    """Return the user-facing message for any exception (generic for non-domain errors)."""
    if isinstance(exc, HiveException):
        return message_for(exc.kind)
    return GENERIC_ERROR_MESSAGE
