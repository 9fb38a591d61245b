# =============================================================================
# Job Model
# =============================================================================
# Defines the Job model tracking ingestion of one stored object in MongoDB.
# =============================================================================

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


__all__ = ["Job", "JobStatus", "ALLOWED_TRANSITIONS", "TERMINAL_STATUSES"]


class JobStatus(str, Enum):
    """Lifecycle status of an ingestion job."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# PENDING -> FAILED covers a failure while entering PROCESSING.
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class Job(BaseModel):
    """
    Job document model for MongoDB tracking.

    One job represents "ingest this one stored object". Jobs are created in
    PENDING, claimed oldest-first by the ingestion worker and left in a
    terminal status (COMPLETED or FAILED) for inspection.

    Attributes:
        id: MongoDB ObjectId as string (None until persisted)
        object_key: Key of the source object in the landing bucket
        status: Current lifecycle status
        created_at: Creation timestamp, used for FIFO claim order
        started_at: Timestamp of the PENDING -> PROCESSING transition
        completed_at: Timestamp of entering a terminal status
        updated_at: Timestamp of the latest status transition
        processed_lines: Number of non-blank lines persisted
        error: Error message, set only on FAILED
    """

    id: Optional[str] = Field(None, description="MongoDB ObjectId as string")
    object_key: str = Field(..., description="Source object key (immutable)")
    status: JobStatus = Field(JobStatus.PENDING, description="Current job status")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Job creation timestamp",
    )
    started_at: Optional[datetime] = Field(None, description="Processing start timestamp")
    completed_at: Optional[datetime] = Field(None, description="Terminal status timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last transition timestamp")
    processed_lines: Optional[int] = Field(
        None, ge=0, description="Number of non-blank lines persisted"
    )
    error: Optional[str] = Field(None, description="Error message if failed")

    model_config = ConfigDict(extra="ignore")

    @field_validator("object_key")
    @classmethod
    def validate_object_key(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("object_key cannot be empty")
        return v

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, status: JobStatus) -> bool:
        """Return True if moving from the current status to ``status`` is allowed."""
        return status in ALLOWED_TRANSITIONS[self.status]

    def to_document(self) -> dict:
        """
        Build the MongoDB document for this job.

        The ``id`` field is dropped; MongoDB assigns ``_id`` on insert.
        Datetimes stay native so pymongo stores them as BSON dates.
        """
        document = self.model_dump(exclude={"id"})
        document["status"] = self.status.value
        return document

    @classmethod
    def from_document(cls, document: dict) -> "Job":
        """Build a Job from a raw MongoDB document."""
        data = dict(document)
        object_id = data.pop("_id", None)
        if object_id is not None:
            data["id"] = str(object_id)
        return cls(**data)
