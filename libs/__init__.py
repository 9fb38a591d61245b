# =============================================================================
# Line Ingest Shared Libraries
# =============================================================================
# This package contains shared libraries for the line ingestion service.
# See individual sub-packages for detailed documentation.
# =============================================================================

"""
Line ingest shared libraries.

Sub-packages:
- models: Pydantic data models and settings
- storage: MinIO and MongoDB adapters
- ingestion: streaming reader, batching, worker and dispatcher
"""

__version__ = "0.1.0"
