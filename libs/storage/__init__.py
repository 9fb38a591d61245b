"""Storage adapters - MinIO object store and MongoDB job/record store."""

from .minio_store import MinIOObjectStore
from .mongodb_store import JobRepository, MongoDBStore, RecordRepository

__all__ = [
    "MinIOObjectStore",
    "MongoDBStore",
    "JobRepository",
    "RecordRepository",
]
