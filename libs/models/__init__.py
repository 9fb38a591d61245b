# =============================================================================
# Data Models Library
# =============================================================================
# Pydantic models and settings for the line ingestion pipeline.
# =============================================================================

"""
Data models for the ingestion pipeline.

This library provides:
- Job: Ingestion job ledger schema and status lifecycle
- LineRecord: Persisted line record schema
- Configuration models
"""

__version__ = "0.1.0"

# Job models
from .job import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    Job,
    JobStatus,
)

# Record models
from .record import LineRecord

# Configuration models
from .config import (
    DEFAULT_PAGE_SIZE,
    IngestSettings,
    MinIOSettings,
    MongoSettings,
)

__all__ = [
    # Job models
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "Job",
    "JobStatus",
    # Record models
    "LineRecord",
    # Configuration models
    "DEFAULT_PAGE_SIZE",
    "IngestSettings",
    "MinIOSettings",
    "MongoSettings",
]
