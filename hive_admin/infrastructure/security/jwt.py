"""Bearer token issue and verification (python-jose).

The identity provider proper is external; this module only signs tokens
for tooling and tests and verifies the sub claim carried by requests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from hive_admin.core.config import get_settings


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Return a signed JWT whose sub claim is the user id.

    Args:
        subject: User id.
        expires_delta: Optional TTL; else settings.access_token_expire_minutes.
        extra_claims: Additional claims to encode.
    """
    settings = get_settings()
    claims: dict[str, Any] = dict(extra_claims or {})
    claims["sub"] = subject
    claims["exp"] = datetime.now(UTC) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    encoded = jwt.encode(
        claims,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT; exp and sub are required.

    Raises:
        ValueError: If the token is invalid, expired, or missing sub.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload.get("sub"):
        raise ValueError("Token missing required claim: sub")
    return payload
