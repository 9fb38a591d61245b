# =============================================================================
# Ingestion Pipeline
# =============================================================================
# Streaming line reader, page batching, single-job worker and dispatcher.
# =============================================================================

from .batching import BatchAccumulator, BatchResult
from .dispatcher import Dispatcher
from .line_reader import ObjectLineSource, iter_lines
from .protocols import JobStore, ObjectStore, RecordStore
from .worker import IngestionWorker, RunOutcome, RunReport, WorkerState

__all__ = [
    "BatchAccumulator",
    "BatchResult",
    "Dispatcher",
    "IngestionWorker",
    "JobStore",
    "ObjectLineSource",
    "ObjectStore",
    "RecordStore",
    "RunOutcome",
    "RunReport",
    "WorkerState",
    "iter_lines",
]
