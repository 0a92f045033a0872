"""Health check endpoint. No dependencies; used for liveness probes."""

from fastapi import APIRouter

from hive_admin.core.config import get_settings
from hive_admin.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(version=get_settings().app_version)
