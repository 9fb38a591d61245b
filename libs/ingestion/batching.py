# =============================================================================
# Batch Accumulator
# =============================================================================
# Buffers non-blank lines into fixed-size pages and writes each page with a
# single bulk insert.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Iterable

from libs.ingestion.protocols import RecordStore
from libs.models import DEFAULT_PAGE_SIZE, LineRecord

__all__ = ["BatchAccumulator", "BatchResult"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchResult:
    """Totals for one drained line sequence."""

    processed_lines: int
    pages_flushed: int


class BatchAccumulator:
    """
    Drains a line sequence into the record store page by page.

    Blank and whitespace-only lines are skipped and not counted. Stored
    content is the line as read; trimming only decides blankness. A flush
    failure propagates and stops consumption; pages already written stay
    written.
    """

    def __init__(self, records: RecordStore, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.records = records
        self.page_size = page_size

    def consume(self, lines: Iterable[str], object_key: str) -> BatchResult:
        """
        Persist every non-blank line of ``lines`` as a LineRecord.

        Args:
            lines: Lazy line sequence, consumed once
            object_key: Source key stored as each record's ``original_file``

        Returns:
            BatchResult with the processed line count and pages written

        Raises:
            PersistenceError: If a page write fails
        """
        page: list[LineRecord] = []
        processed = 0
        pages = 0

        for line in lines:
            if not line.strip():
                continue
            page.append(LineRecord(content=line, original_file=object_key))
            processed += 1
            if len(page) >= self.page_size:
                pages += self._flush(page, object_key, pages)
                page = []

        pages += self._flush(page, object_key, pages)
        return BatchResult(processed_lines=processed, pages_flushed=pages)

    def _flush(self, page: list[LineRecord], object_key: str, index: int) -> int:
        if not page:
            return 0
        self.records.bulk_insert(page)
        logger.debug("Flushed page %d of %s (%d records)", index + 1, object_key, len(page))
        return 1
