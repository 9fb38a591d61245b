"""
Unit tests for BatchAccumulator page flushing.
"""

import pytest

from libs.errors import PersistenceError
from libs.ingestion import BatchAccumulator, BatchResult
from libs.models import LineRecord


def test_scenario_blank_lines_skipped(recording_records):
    accumulator = BatchAccumulator(recording_records)

    result = accumulator.consume(["", "hello", "  ", "world"], "a.txt")

    assert result == BatchResult(processed_lines=2, pages_flushed=1)
    assert recording_records.records == [
        LineRecord(content="hello", original_file="a.txt"),
        LineRecord(content="world", original_file="a.txt"),
    ]


def test_every_record_references_the_object_key(recording_records):
    lines = [f"line {i}" if i % 3 else "   " for i in range(30)]
    blanks = sum(1 for line in lines if not line.strip())

    result = BatchAccumulator(recording_records, page_size=7).consume(lines, "logs/app.log")

    assert result.processed_lines == len(lines) - blanks
    assert len(recording_records.records) == len(lines) - blanks
    assert {r.original_file for r in recording_records.records} == {"logs/app.log"}


def test_content_is_stored_untrimmed(recording_records):
    BatchAccumulator(recording_records).consume(["  padded\t"], "a.txt")
    assert recording_records.records[0].content == "  padded\t"


def test_page_boundary_1000_plus_one(recording_records):
    lines = (f"row {i}" for i in range(1001))

    result = BatchAccumulator(recording_records).consume(lines, "big.txt")

    assert recording_records.page_sizes == [1000, 1]
    assert result == BatchResult(processed_lines=1001, pages_flushed=2)


def test_exact_page_issues_no_empty_trailing_write(recording_records):
    BatchAccumulator(recording_records).consume((f"row {i}" for i in range(1000)), "big.txt")
    assert recording_records.page_sizes == [1000]


def test_no_lines_issues_no_write(recording_records):
    result = BatchAccumulator(recording_records).consume([], "empty.txt")
    assert result == BatchResult(processed_lines=0, pages_flushed=0)
    assert recording_records.pages == []


def test_only_blank_lines_issues_no_write(recording_records):
    result = BatchAccumulator(recording_records).consume(["", " ", "\t"], "blank.txt")
    assert result.processed_lines == 0
    assert recording_records.pages == []


def test_pages_flushed_in_order(recording_records):
    BatchAccumulator(recording_records, page_size=2).consume(["a", "b", "c", "d", "e"], "x")
    assert [[r.content for r in page] for page in recording_records.pages] == [
        ["a", "b"],
        ["c", "d"],
        ["e"],
    ]


def test_flush_failure_stops_consumption_and_keeps_earlier_pages(recording_records):
    recording_records.fail_on_page = 2
    consumed = []

    def lines():
        for i in range(10):
            consumed.append(i)
            yield f"row {i}"

    with pytest.raises(PersistenceError):
        BatchAccumulator(recording_records, page_size=3).consume(lines(), "x")

    assert recording_records.page_sizes == [3]
    # The second page filled at row 5; nothing after it was read.
    assert consumed == [0, 1, 2, 3, 4, 5]


@pytest.mark.parametrize("page_size", [0, -5])
def test_invalid_page_size(recording_records, page_size):
    with pytest.raises(ValueError, match="page_size"):
        BatchAccumulator(recording_records, page_size=page_size)
