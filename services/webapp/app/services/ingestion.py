# =============================================================================
# Ingestion Services
# =============================================================================
# Process-wide MinIO store, MongoDB store and dispatcher used by the routers.
# =============================================================================

from typing import Optional

from libs.ingestion import Dispatcher, IngestionWorker
from libs.storage import MinIOObjectStore, MongoDBStore

from app.config import get_ingest_settings, get_minio_settings, get_mongo_settings

# Singleton instances
_object_store: Optional[MinIOObjectStore] = None
_mongodb_store: Optional[MongoDBStore] = None
_dispatcher: Optional[Dispatcher] = None


def get_object_store() -> MinIOObjectStore:
    """Get or create the MinIO object store singleton."""
    global _object_store
    if _object_store is None:
        _object_store = MinIOObjectStore.from_settings(get_minio_settings())
    return _object_store


def get_mongodb_store() -> MongoDBStore:
    """Get or create the MongoDB store singleton."""
    global _mongodb_store
    if _mongodb_store is None:
        _mongodb_store = MongoDBStore.from_settings(get_mongo_settings())
    return _mongodb_store


def get_dispatcher() -> Dispatcher:
    """Get or create the dispatcher singleton (one per process)."""
    global _dispatcher
    if _dispatcher is None:
        ingest = get_ingest_settings()
        mongo = get_mongodb_store()
        worker = IngestionWorker(
            jobs=mongo.jobs,
            records=mongo.records,
            objects=get_object_store(),
            page_size=ingest.page_size,
            encoding=ingest.encoding,
        )
        _dispatcher = Dispatcher(worker, poll_interval=ingest.poll_interval_seconds)
    return _dispatcher


def reset_services() -> None:
    """Drop the singletons; the next getter call rebuilds from settings."""
    global _object_store, _mongodb_store, _dispatcher
    _object_store = None
    _mongodb_store = None
    _dispatcher = None
