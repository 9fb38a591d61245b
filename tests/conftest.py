"""
Shared pytest fixtures for the ingestion tests.

Provides an in-memory MongoDB (mongomock), an in-memory object store and a
record store that remembers every page it was asked to write.
"""

from contextlib import contextmanager
from io import BytesIO

import mongomock
import pytest
from urllib3.exceptions import ProtocolError

from libs.errors import ObjectNotFound, PersistenceError
from libs.storage import MongoDBStore


# =============================================================================
# Object Store Fakes
# =============================================================================

class FailingStream(BytesIO):
    """Byte stream that raises a connection fault after ``fail_after`` bytes."""

    def __init__(self, data: bytes, fail_after: int):
        super().__init__(data)
        self.fail_after = fail_after

    def _check(self, size):
        if self.tell() >= self.fail_after:
            raise ProtocolError("Connection broken: IncompleteRead")
        remaining = self.fail_after - self.tell()
        if size is None or size < 0 or size > remaining:
            return remaining
        return size

    def read(self, size=-1):
        return super().read(self._check(size))

    def read1(self, size=-1):
        return super().read1(self._check(size))


class InMemoryObjectStore:
    """Object store over a dict of key -> bytes."""

    def __init__(self, objects=None, bucket="landing-zone"):
        self.objects = dict(objects or {})
        self.bucket = bucket
        self.fail_after: dict[str, int] = {}
        self.opened: list[str] = []
        self.closed: list[str] = []

    def put_lines(self, key, lines, newline="\n"):
        self.objects[key] = newline.join(lines).encode("utf-8")

    @contextmanager
    def open_read_stream(self, key):
        if key not in self.objects:
            raise ObjectNotFound(key, self.bucket)
        data = self.objects[key]
        if key in self.fail_after:
            stream = FailingStream(data, self.fail_after[key])
        else:
            stream = BytesIO(data)
        self.opened.append(key)
        try:
            yield stream
        finally:
            stream.close()
            self.closed.append(key)


class RecordingRecordStore:
    """Record store that keeps every flushed page in memory."""

    def __init__(self, fail_on_page=None):
        self.pages: list[list] = []
        self.fail_on_page = fail_on_page

    def bulk_insert(self, records):
        if self.fail_on_page is not None and len(self.pages) + 1 == self.fail_on_page:
            raise PersistenceError("Write rejected")
        self.pages.append(list(records))
        return len(records)

    @property
    def page_sizes(self):
        return [len(page) for page in self.pages]

    @property
    def records(self):
        return [record for page in self.pages for record in page]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mongomock_client():
    """In-memory MongoDB client for tests."""
    return mongomock.MongoClient()


@pytest.fixture
def mongo_store(monkeypatch, mongomock_client):
    """MongoDBStore configured to use the mongomock client."""
    monkeypatch.setattr(
        "libs.storage.mongodb_store.MongoClient",
        lambda *args, **kwargs: mongomock_client,
    )
    return MongoDBStore(connection_string="mongodb://localhost:27017", database="line_ingest_test")


@pytest.fixture
def jobs_collection(mongo_store, mongomock_client):
    return mongomock_client[mongo_store.database][MongoDBStore.JOBS]


@pytest.fixture
def records_collection(mongo_store, mongomock_client):
    return mongomock_client[mongo_store.database][MongoDBStore.RECORDS]


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def recording_records():
    return RecordingRecordStore()
