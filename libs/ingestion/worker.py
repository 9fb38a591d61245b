# =============================================================================
# Ingestion Worker
# =============================================================================
# Runs one job through claim -> stream -> batch -> finalize.
# =============================================================================

"""
Single-job ingestion worker.

States of one run::

    IDLE -> CLAIMED -> STREAMING -> FINALIZING -> DONE
                 \\          \\            \\
                  +----------+------------+--> ERRORED

Every failure after the claim is recorded on the claimed job (FAILED with
the error message) and never escapes ``run_once``. Transitions always target
the claimed job's own id.

If the store cannot be written at all, a job that never left PENDING is
reported UNAVAILABLE so the dispatcher stops instead of reclaiming it.
"""

import logging
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from libs.errors import IngestError, PersistenceError
from libs.ingestion.batching import BatchAccumulator
from libs.ingestion.line_reader import ObjectLineSource
from libs.ingestion.protocols import JobStore, ObjectStore, RecordStore
from libs.models import DEFAULT_PAGE_SIZE, Job, JobStatus

__all__ = ["IngestionWorker", "RunOutcome", "RunReport", "WorkerState", "describe_error"]

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    IDLE = "idle"
    CLAIMED = "claimed"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    ERRORED = "errored"


class RunOutcome(str, Enum):
    """Result of one worker run, as seen by the dispatcher."""

    NO_WORK = "no_work"
    COMPLETED = "completed"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"  # job store not writable or not reachable


@dataclass(frozen=True)
class RunReport:
    outcome: RunOutcome
    job: Optional[Job] = None
    processed_lines: int = 0
    error: Optional[str] = None
    failed_in: Optional[WorkerState] = None


def describe_error(exc: BaseException) -> str:
    """Render an exception as the message stored on a FAILED job."""
    message = str(exc).strip()
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


class IngestionWorker:
    """
    Processes the oldest pending job, one job per ``run_once`` call.

    Args:
        jobs: Job ledger (claim and transitions)
        records: Record store receiving page writes
        objects: Object store the lines are streamed from
        page_size: Records per bulk write
        encoding: Text encoding of stored objects
    """

    def __init__(
        self,
        jobs: JobStore,
        records: RecordStore,
        objects: ObjectStore,
        page_size: int = DEFAULT_PAGE_SIZE,
        encoding: str = "utf-8",
    ) -> None:
        self.jobs = jobs
        self.objects = objects
        self.encoding = encoding
        self.accumulator = BatchAccumulator(records, page_size=page_size)
        self.state = WorkerState.IDLE

    def run_once(self) -> RunReport:
        """Claim and process a single job. Never raises."""
        self.state = WorkerState.IDLE
        try:
            job = self.jobs.claim_oldest_pending()
        except PersistenceError as exc:
            logger.error("Could not query pending jobs: %s", exc)
            return RunReport(RunOutcome.UNAVAILABLE, error=describe_error(exc))

        if job is None:
            logger.debug("No pending jobs")
            return RunReport(RunOutcome.NO_WORK)

        self.state = WorkerState.CLAIMED
        logger.info("Claimed job %s for %s", job.id, job.object_key)
        return self._process(job)

    def _process(self, job: Job) -> RunReport:
        processed = 0
        try:
            job = self.jobs.transition(job, JobStatus.PROCESSING)

            self.state = WorkerState.STREAMING
            source = ObjectLineSource(self.objects, job.object_key, encoding=self.encoding)
            with closing(iter(source)) as lines:
                result = self.accumulator.consume(lines, job.object_key)
            processed = result.processed_lines

            self.state = WorkerState.FINALIZING
            job = self.jobs.transition(
                job, JobStatus.COMPLETED, processed_lines=processed
            )
        except Exception as exc:
            return self._fail(job, exc)

        self.state = WorkerState.DONE
        logger.info(
            "Job %s completed: %d lines in %d pages",
            job.id,
            processed,
            result.pages_flushed,
        )
        return RunReport(RunOutcome.COMPLETED, job=job, processed_lines=processed)

    def _fail(self, job: Job, exc: Exception) -> RunReport:
        failed_in = self.state
        self.state = WorkerState.ERRORED
        error = describe_error(exc)
        if isinstance(exc, IngestError):
            logger.warning("Job %s failed while %s: %s", job.id, failed_in.value, error)
        else:
            logger.exception("Job %s failed unexpectedly while %s", job.id, failed_in.value)

        try:
            job = self.jobs.transition(job, JobStatus.FAILED, error)
        except Exception:
            # Known gap: the job may be left PENDING or PROCESSING.
            logger.exception("Could not mark job %s as FAILED", job.id)
            if job.status == JobStatus.PENDING:
                # Still claimable: the next claim would return this same job.
                return RunReport(
                    RunOutcome.UNAVAILABLE,
                    job=job,
                    error=error,
                    failed_in=failed_in,
                )

        return RunReport(
            RunOutcome.FAILED,
            job=job,
            error=error,
            failed_in=failed_in,
        )
