"""
FastAPI application lifespan management.

Handles startup and shutdown of all long-lived resources:
  - Logging setup
  - Configuration validation
  - MongoDB connection and indexes
  - Daily purchase scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import settings, validate_startup_settings
from app.core.logging import setup_logging, get_logger
from app.infrastructure.db.mongo import (
    connect_to_mongo,
    close_mongo,
    ensure_indexes,
)
from app.worker.scheduler import start_scheduler, stop_scheduler
from app.worker.worker import stop_purchase_runs

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Manage application lifecycle.

    Startup:
      1. Configure logging
      2. Validate required settings (fail fast before any run)
      3. Connect to MongoDB with retry-backoff
      4. Create database indexes
      5. Start the daily purchase scheduler

    Shutdown:
      1. Stop the scheduler
      2. Let an active purchase run finish its current domain
      3. Close MongoDB connection
    """
    # ── Startup ──────────────────────────────────────────────
    setup_logging()
    logger.info("Starting domain agent...")

    validate_startup_settings(settings)

    await connect_to_mongo()
    await ensure_indexes()
    logger.info("MongoDB connected and indexes ensured")

    if settings.scheduler_enabled:
        start_scheduler()
    else:
        logger.info("Scheduler disabled; runs only start via the API")

    yield

    # ── Shutdown ─────────────────────────────────────────────
    logger.info("Shutting down domain agent...")
    stop_scheduler()
    await stop_purchase_runs()
    await close_mongo()
    logger.info("Shutdown complete")
