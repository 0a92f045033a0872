"""Security: JWT verification for the authenticated actor."""

from hive_admin.infrastructure.security.jwt import create_access_token, verify_token

__all__ = ["create_access_token", "verify_token"]
