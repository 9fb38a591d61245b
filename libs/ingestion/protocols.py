# =============================================================================
# Collaborator Contracts
# =============================================================================
# Structural interfaces the ingestion core depends on. The MinIO and MongoDB
# adapters in libs.storage satisfy them; tests use in-memory fakes.
# =============================================================================

from typing import BinaryIO, ContextManager, Optional, Protocol, Sequence

from libs.models import Job, JobStatus, LineRecord

__all__ = ["ObjectStore", "JobStore", "RecordStore"]


class ObjectStore(Protocol):
    def open_read_stream(self, key: str) -> ContextManager[BinaryIO]:
        """Open ``key`` for sequential reading; raises ObjectNotFound or TransferError."""
        ...


class JobStore(Protocol):
    def create(self, object_key: str) -> Job: ...

    def claim_oldest_pending(self) -> Optional[Job]: ...

    def transition(
        self,
        job: Job,
        new_status: JobStatus,
        error: Optional[str] = None,
        *,
        processed_lines: Optional[int] = None,
    ) -> Job: ...

    def get(self, job_id: str) -> Job: ...


class RecordStore(Protocol):
    def bulk_insert(self, records: Sequence[LineRecord]) -> int:
        """Write one page; raises PersistenceError on failure."""
        ...
