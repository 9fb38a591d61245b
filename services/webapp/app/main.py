# =============================================================================
# FastAPI Main Application
# =============================================================================
# Entry point for the ingestion service. The dispatcher lives in this process
# and is started and stopped with the application.
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.routers import health, jobs, records, uploads
from app.services.ingestion import get_dispatcher, get_mongodb_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    dispatcher = get_dispatcher()
    # Picks up jobs left PENDING before startup.
    dispatcher.start()
    logger.info("Ingestion dispatcher started")
    try:
        yield
    finally:
        await dispatcher.stop()
        get_mongodb_store().close()


# Application instance
app = FastAPI(
    title="Line Ingest Service",
    description="Ingest line-delimited objects from MinIO into MongoDB, one job at a time.",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(uploads.router)
app.include_router(jobs.router)
app.include_router(records.router)
