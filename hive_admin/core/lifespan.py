"""Application lifespan: startup and shutdown.

Wiring only: Redis permission cache (if enabled), notification
dispatcher, and DB engine dispose.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hive_admin.core.config import get_settings
from hive_admin.infrastructure.persistence.database import dispose_engine
from hive_admin.infrastructure.services.notification_service import (
    LogOnlyNotificationService,
    NotificationDispatcher,
)
from hive_admin.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Shutdown order: drain pending notices, cache disconnect, engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if settings.redis_enabled:
        from hive_admin.infrastructure.cache.redis_cache import CacheService

        cache = CacheService(settings=settings)
        await cache.connect()
        app.state.cache = cache
    else:
        app.state.cache = None

    app.state.dispatcher = NotificationDispatcher(
        LogOnlyNotificationService(), enabled=settings.notifications_enabled
    )
    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    # ---- Shutdown ----
    await app.state.dispatcher.drain()

    if getattr(app.state, "cache", None) is not None:
        await app.state.cache.disconnect()
        logger.info("Cache disconnected")

    await dispose_engine()
