# =============================================================================
# Services Module
# =============================================================================
# Service singletons for MinIO, MongoDB and the ingestion dispatcher.
# =============================================================================

from app.services.ingestion import (
    get_dispatcher,
    get_mongodb_store,
    get_object_store,
)

__all__ = [
    "get_dispatcher",
    "get_mongodb_store",
    "get_object_store",
]
