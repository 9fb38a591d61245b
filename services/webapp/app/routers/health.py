# =============================================================================
# Health Check Router
# =============================================================================
# Endpoints for container health and readiness checks.
# =============================================================================

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from libs.ingestion import Dispatcher
from libs.storage import MongoDBStore

from app.services.ingestion import get_dispatcher, get_mongodb_store

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness check response model."""

    status: str
    services: dict[str, str]
    dispatcher_busy: bool


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Server is running and healthy!"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the service is running.
    """
    from app import __version__

    return HealthResponse(status="healthy", version=__version__)


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(
    mongo: MongoDBStore = Depends(get_mongodb_store),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> ReadyResponse:
    """
    Readiness check endpoint.

    Verifies MongoDB connectivity and reports whether a run is active.
    """
    mongodb_ok = mongo.ping()
    return ReadyResponse(
        status="ready" if mongodb_ok else "degraded",
        services={"mongodb": "ok" if mongodb_ok else "unreachable"},
        dispatcher_busy=dispatcher.busy,
    )
