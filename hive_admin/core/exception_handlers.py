"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Domain exceptions map to
an HTTP status by ErrorKind; the body is HiveException.to_dict() with the
user-facing message from error_messages.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hive_admin.application.services.error_messages import message_for_exception
from hive_admin.core.config import get_settings
from hive_admin.domain.exceptions import ErrorKind, HiveException

logger = logging.getLogger(__name__)

KIND_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.KEY_IN_USE: 409,
    ErrorKind.PROTECTED_ENTITY: 409,
    ErrorKind.LAST_ADMIN_STANDING: 409,
    ErrorKind.SELF_PROTECTION: 409,
    ErrorKind.IN_USE: 409,
    ErrorKind.SCOPE_MISMATCH: 403,
    ErrorKind.VALIDATION: 400,
    ErrorKind.TIMEOUT: 503,
}


def status_for(exc: HiveException) -> int:
    if exc.kind is None:
        return 400
    return KIND_STATUS.get(exc.kind, 400)


def _hive_exception_handler(request: Request, exc: HiveException) -> JSONResponse:
    """Return JSON from HiveException.to_dict() with the kind's status code.

    message is the stable user-facing text; the technical message moves to detail.
    """
    content = exc.to_dict()
    content["detail"] = content["message"]
    content["message"] = message_for_exception(exc)
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHENTICATED else None
    return JSONResponse(status_code=status_for(exc), content=content, headers=headers)


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "kind": ErrorKind.VALIDATION.value,
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    detail: Any = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register HiveException, RequestValidationError, HTTPException and catch-all handlers."""
    app.add_exception_handler(HiveException, _hive_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
