"""Authenticated actor dependency: bearer token -> user id."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hive_admin.domain.exceptions import AuthenticationException
from hive_admin.infrastructure.security.jwt import verify_token
from hive_admin.shared.context import set_current_user

_http_bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> str:
    """Return the actor id (token sub) and record it as the audit actor.

    Raises:
        AuthenticationException: Missing, malformed or expired token.
    """
    if credentials is None:
        raise AuthenticationException()
    try:
        payload = verify_token(credentials.credentials)
    except ValueError as e:
        raise AuthenticationException("Invalid or expired token") from e
    user_id = str(payload["sub"])
    set_current_user(user_id)
    return user_id
