# =============================================================================
# Jobs Router
# =============================================================================
# Endpoints for creating ingestion jobs and polling their status.
# =============================================================================

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from libs.errors import JobNotFound, PersistenceError
from libs.ingestion import Dispatcher
from libs.models import Job, JobStatus
from libs.s3_utils import extract_s3_key
from libs.storage import MinIOObjectStore, MongoDBStore

from app.services.ingestion import get_dispatcher, get_mongodb_store, get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["jobs"])


class JobCreatedResponse(BaseModel):
    """Response for job creation."""

    message: str
    job_id: str
    object_key: str
    status: JobStatus


class JobResponse(BaseModel):
    """Job status as seen by polling clients."""

    job_id: str
    object_key: str
    status: JobStatus
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    processed_lines: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(
            job_id=job.id,
            object_key=job.object_key,
            status=job.status,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            processed_lines=job.processed_lines,
            error=job.error,
        )


class JobListResponse(BaseModel):
    """Response for job listing."""

    jobs: list[JobResponse]
    count: int


class JobStatsResponse(BaseModel):
    """Number of jobs in each status."""

    counts: dict[JobStatus, int]
    total: int


@router.post("/process/{object_key:path}", response_model=JobCreatedResponse)
async def create_job(
    object_key: str,
    mongo: MongoDBStore = Depends(get_mongodb_store),
    objects: MinIOObjectStore = Depends(get_object_store),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> JobCreatedResponse:
    """
    Create a PENDING ingestion job for an object and wake the dispatcher.

    Accepts a plain key or an s3:// path into the landing bucket. The
    object's existence is not checked here; a missing object fails the job.
    """
    try:
        key = extract_s3_key(object_key, bucket=objects.bucket)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        job = mongo.jobs.create(key)
    except PersistenceError as exc:
        logger.error("Job creation failed for %s: %s", key, exc)
        raise HTTPException(status_code=503, detail="Could not create job") from exc

    dispatcher.notify_job_created()

    return JobCreatedResponse(
        message="Job created successfully",
        job_id=job.id,
        object_key=job.object_key,
        status=job.status,
    )


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(
    status: Optional[JobStatus] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=500, description="Maximum results"),
    mongo: MongoDBStore = Depends(get_mongodb_store),
) -> JobListResponse:
    """List jobs, newest first."""
    try:
        jobs = mongo.jobs.list_jobs(status=status, limit=limit)
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return JobListResponse(
        jobs=[JobResponse.from_job(job) for job in jobs],
        count=len(jobs),
    )


@router.get("/jobs/stats", response_model=JobStatsResponse)
async def job_stats(
    mongo: MongoDBStore = Depends(get_mongodb_store),
) -> JobStatsResponse:
    """Count jobs per status, zero counts included."""
    try:
        counts = mongo.jobs.count_by_status()
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return JobStatsResponse(counts=counts, total=sum(counts.values()))


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    mongo: MongoDBStore = Depends(get_mongodb_store),
) -> JobResponse:
    """Poll one job's status, processed line count and error."""
    try:
        job = mongo.jobs.get(job_id)
    except JobNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return JobResponse.from_job(job)
