# =============================================================================
# Ingestion Errors
# =============================================================================
# Exception taxonomy shared by the storage adapters and the ingestion core.
# Library exceptions (minio, urllib3, pymongo) are translated into these at
# the storage boundary.
# =============================================================================

__all__ = [
    "IngestError",
    "ObjectNotFound",
    "TransferError",
    "PersistenceError",
    "JobNotFound",
    "InvalidTransition",
]


class IngestError(Exception):
    """Base class for all ingestion errors."""


class ObjectNotFound(IngestError):
    """The referenced object key does not exist in the bucket."""

    def __init__(self, key: str, bucket: str | None = None):
        self.key = key
        self.bucket = bucket
        location = f" in bucket '{bucket}'" if bucket else ""
        super().__init__(f"Object '{key}' not found{location}")


class TransferError(IngestError):
    """Network or stream fault while reading an object."""


class PersistenceError(IngestError):
    """The document store is unreachable or rejected a write."""


class JobNotFound(IngestError):
    """No job exists for the given id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class InvalidTransition(IngestError):
    """A status transition outside the job lifecycle was requested."""

    def __init__(self, job_id: str | None, current: str, requested: str):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Job {job_id}: cannot transition from {current} to {requested}"
        )
