"""API v1."""

from hive_admin.api.v1.router import api_router

__all__ = ["api_router"]
