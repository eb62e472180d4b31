"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. No business logic here,
only wiring of infrastructure (logging, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from taskflow.core.config import get_settings
from taskflow.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit dispose the SQL engine."""
    settings = get_settings()

    # ---- Startup ----
    setup_logging()
    logger.info(
        "%s %s starting (telemetry %s)",
        settings.app_name,
        settings.app_version,
        "enabled" if settings.telemetry_enabled else "disabled",
    )
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; task and workflow endpoints will fail")

    yield

    # ---- Shutdown ----
    from taskflow.infrastructure.persistence import database

    await database.dispose_engine()
