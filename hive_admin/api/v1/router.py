"""API v1 router aggregation."""

from fastapi import APIRouter

from hive_admin.api.v1.endpoints import health, me, memberships, permissions, roles

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(me.router, prefix="/me", tags=["me"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(memberships.router, prefix="/memberships", tags=["memberships"])
