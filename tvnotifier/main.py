from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI

from tvnotifier.config import load_settings, setup_logging
from tvnotifier.database import close_db, init_db
from tvnotifier.services.scheduler_service import digest_scheduler

from tvnotifier.routers import main_router


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TVNOTIFIER_CONFIG"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    settings = load_settings(os.getenv(CONFIG_ENV_VAR))
    setup_logging(settings.log_level)
    logger.info("Starting TV Notifier service...")

    try:
        logger.info("Initializing database...")
        await init_db(settings.database_url)

        logger.info("Starting scheduler...")
        digest_scheduler.start(settings)

        logger.info("TV Notifier service started successfully")
    except Exception as e:
        logger.error(f"Failed to start TV Notifier service: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down TV Notifier service...")

    try:
        digest_scheduler.shutdown()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    await close_db()
    logger.info("TV Notifier service stopped")


app = FastAPI(
    title="TV Notifier",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)
