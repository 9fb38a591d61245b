"""MongoDB Store - job ledger and line record persistence."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, ClassVar, Dict, Iterator, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from libs.errors import InvalidTransition, JobNotFound, PersistenceError
from libs.models import TERMINAL_STATUSES, Job, JobStatus, LineRecord, MongoSettings

__all__ = ["MongoDBStore", "JobRepository", "RecordRepository"]

logger = logging.getLogger(__name__)

# Sort order for claiming: oldest first, ties broken by insertion order.
CLAIM_SORT = [("created_at", ASCENDING), ("_id", ASCENDING)]


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to {action}: {exc}") from exc


class JobRepository:
    """
    CRUD over ingestion job documents.

    Claiming does not mutate status; the caller performs the
    PENDING -> PROCESSING transition. Transitions are targeted at the job's
    own ``_id`` and only apply while the stored status still matches the
    caller's view of the job.
    """

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def create(self, object_key: str) -> Job:
        """
        Insert a new PENDING job for ``object_key``.

        Raises:
            PersistenceError: If the insert fails
        """
        job = Job(object_key=object_key, created_at=datetime.now(timezone.utc))
        with _translate_errors(f"create job for '{object_key}'"):
            result = self._collection.insert_one(job.to_document())
        return job.model_copy(update={"id": str(result.inserted_id)})

    def claim_oldest_pending(self) -> Job | None:
        """
        Return the oldest PENDING job, or None when there is no pending work.
        """
        with _translate_errors("query pending jobs"):
            document = self._collection.find_one(
                {"status": JobStatus.PENDING.value},
                sort=CLAIM_SORT,
            )
        if not document:
            return None
        return Job.from_document(document)

    def transition(
        self,
        job: Job,
        new_status: JobStatus,
        error: str | None = None,
        *,
        processed_lines: int | None = None,
    ) -> Job:
        """
        Persist a status change for ``job`` and return the updated job.

        Raises:
            InvalidTransition: If the lifecycle does not allow the change
            PersistenceError: If the write fails or the stored job is no
                longer in ``job.status``
        """
        if job.id is None:
            raise ValueError("Cannot transition a job that has not been persisted")
        if not job.can_transition_to(new_status):
            raise InvalidTransition(job.id, job.status.value, new_status.value)

        now = datetime.now(timezone.utc)
        update_doc: Dict[str, Any] = {
            "status": new_status.value,
            "updated_at": now,
        }
        if new_status == JobStatus.PROCESSING:
            update_doc["started_at"] = now
        if new_status in TERMINAL_STATUSES:
            update_doc["completed_at"] = now
        if new_status == JobStatus.FAILED:
            update_doc["error"] = error or "Unknown error"
        if processed_lines is not None:
            update_doc["processed_lines"] = processed_lines

        with _translate_errors(f"transition job {job.id} to {new_status.value}"):
            result = self._collection.update_one(
                {"_id": ObjectId(job.id), "status": job.status.value},
                {"$set": update_doc},
            )
        if result.matched_count == 0:
            raise PersistenceError(
                f"Job {job.id} is no longer {job.status.value}; "
                f"transition to {new_status.value} not applied"
            )

        update_doc["status"] = new_status
        return job.model_copy(update=update_doc)

    def get(self, job_id: str) -> Job:
        """
        Load a job by id.

        Raises:
            JobNotFound: If the id is malformed or unknown
            PersistenceError: If the query fails
        """
        try:
            oid = ObjectId(job_id)
        except (InvalidId, TypeError) as exc:
            raise JobNotFound(job_id) from exc

        with _translate_errors(f"load job {job_id}"):
            document = self._collection.find_one({"_id": oid})
        if not document:
            raise JobNotFound(job_id)
        return Job.from_document(document)

    def list_jobs(self, status: JobStatus | None = None, limit: int = 50) -> list[Job]:
        """List jobs newest first, optionally filtered by status."""
        query: Dict[str, Any] = {}
        if status is not None:
            query["status"] = status.value

        with _translate_errors("list jobs"):
            cursor = (
                self._collection.find(query)
                .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
                .limit(limit)
            )
            return [Job.from_document(doc) for doc in cursor]

    def count_by_status(self) -> dict[JobStatus, int]:
        """Return the number of jobs in every status (zero included)."""
        counts = {status: 0 for status in JobStatus}
        with _translate_errors("count jobs"):
            rows = self._collection.aggregate(
                [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
            )
            for row in rows:
                counts[JobStatus(row["_id"])] = row["count"]
        return counts


class RecordRepository:
    """Bulk persistence of derived line records."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def bulk_insert(self, records: Sequence[LineRecord]) -> int:
        """
        Insert one page of records as a single ordered bulk write.

        An empty page issues no write. Success is reported only for the
        whole call.

        Returns:
            Number of records written

        Raises:
            PersistenceError: If the write is rejected or the store is down
        """
        if not records:
            return 0
        with _translate_errors(f"insert {len(records)} records"):
            self._collection.insert_many(
                [record.model_dump() for record in records],
                ordered=True,
            )
        return len(records)

    def count(self, original_file: str | None = None) -> int:
        query = {} if original_file is None else {"original_file": original_file}
        with _translate_errors("count records"):
            return self._collection.count_documents(query)

    def list_for_file(self, original_file: str, limit: int = 100) -> list[LineRecord]:
        """Return records of one object in insertion order."""
        with _translate_errors(f"list records for '{original_file}'"):
            cursor = (
                self._collection.find({"original_file": original_file}, {"_id": 0})
                .sort("_id", ASCENDING)
                .limit(limit)
            )
            return [LineRecord(**doc) for doc in cursor]


class MongoDBStore:
    """
    Owns the MongoDB client and hands out the job and record repositories.

    Jobs and records live in independent collections.
    """

    JOBS: ClassVar[str] = "jobs"
    RECORDS: ClassVar[str] = "records"

    def __init__(self, connection_string: str, database: str = "line_ingest") -> None:
        self.connection_string = connection_string
        self.database = database

    @classmethod
    def from_settings(cls, settings: MongoSettings) -> "MongoDBStore":
        return cls(settings.connection_string, settings.database)

    @cached_property
    def _client(self) -> MongoClient:
        return MongoClient(self.connection_string)

    def _get_db(self) -> Database:
        return self._client[self.database]

    @cached_property
    def jobs(self) -> JobRepository:
        return JobRepository(self._get_db()[self.JOBS])

    @cached_property
    def records(self) -> RecordRepository:
        return RecordRepository(self._get_db()[self.RECORDS])

    def ping(self) -> bool:
        """Return True if the server answers a ping."""
        try:
            self._client.admin.command("ping")
            return True
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False

    def close(self) -> None:
        if "_client" in self.__dict__:
            self._client.close()
