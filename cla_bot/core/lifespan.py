import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cla_bot.core.config import settings
from cla_bot.core.logging import get_logger, setup_logging
from cla_bot.db.migrate import migrate_schema
from cla_bot.db.session import engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Lifespan function for the FastAPI application.
    Handles startup and shutdown events for application services.
    """
    # 1. Logging
    setup_logging(settings.LOG_LEVEL)

    # 2. Bring the schema up to date (Alembic drives its own event loop)
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await asyncio.to_thread(migrate_schema)

    logger.info("%s started", settings.PROJECT_NAME)

    yield

    # 3. Dispose Database Engine
    await engine.dispose()
