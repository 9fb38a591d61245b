# =============================================================================
# MinIO Object Store - S3-Compatible Object Storage Operations
# =============================================================================
# Opens stored objects for sequential reads and stores uploaded files in the
# landing bucket. MinIO/urllib3 failures are translated into the ingestion
# error taxonomy here so the core never sees library exceptions.
# =============================================================================

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import cached_property
from typing import BinaryIO, Iterator, Optional

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from libs.errors import ObjectNotFound, TransferError
from libs.models import MinIOSettings

__all__ = ["MinIOObjectStore", "NOT_FOUND_CODES"]

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


class MinIOObjectStore:
    """
    Object store adapter for MinIO (S3-compatible object storage).

    Provides methods for:
    - Opening an object as a sequential byte stream (ingestion reads)
    - Uploading a file into the landing bucket

    Attributes:
        endpoint: MinIO server endpoint (host:port)
        access_key: Access key for authentication
        secret_key: Secret key for authentication
        use_ssl: Whether to use SSL/TLS
        bucket: Bucket holding uploaded objects
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        use_ssl: bool = False,
        bucket: str = "landing-zone",
    ) -> None:
        self.endpoint = endpoint
        self.access_key = access_key
        self.secret_key = secret_key
        self.use_ssl = use_ssl
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: MinIOSettings) -> "MinIOObjectStore":
        return cls(
            endpoint=settings.endpoint,
            access_key=settings.access_key,
            secret_key=settings.secret_key,
            use_ssl=settings.use_ssl,
            bucket=settings.landing_bucket,
        )

    @cached_property
    def client(self) -> Minio:
        return Minio(
            self.endpoint,
            access_key=self.access_key,
            secret_key=self.secret_key,
            secure=self.use_ssl,
        )

    @contextmanager
    def open_read_stream(self, key: str) -> Iterator[BinaryIO]:
        """
        Open an object for sequential reading.

        The HTTP response is closed and its connection released when the
        context exits, on success and on error.

        Args:
            key: Object key in the bucket

        Yields:
            Readable binary stream over the object body

        Raises:
            ObjectNotFound: If the key does not exist
            TransferError: For any other S3 or connectivity fault
        """
        try:
            response = self.client.get_object(self.bucket, key)
        except S3Error as exc:
            if exc.code in NOT_FOUND_CODES:
                raise ObjectNotFound(key, self.bucket) from exc
            raise TransferError(f"Failed to open '{key}': {exc.code}: {exc.message}") from exc
        except HTTPError as exc:
            raise TransferError(f"Failed to open '{key}': {exc}") from exc

        try:
            yield response
        finally:
            response.close()
            response.release_conn()

    def upload(
        self,
        file: BinaryIO,
        key: str,
        content_type: str = "application/octet-stream",
        length: Optional[int] = None,
    ) -> str:
        """
        Upload a file-like object into the bucket.

        Args:
            file: File-like object to upload
            key: Destination object key
            content_type: MIME type of the file
            length: Size in bytes; measured by seeking when omitted

        Returns:
            The object key written

        Raises:
            TransferError: If the upload fails
        """
        if length is None:
            file.seek(0, 2)  # Seek to end
            length = file.tell()
            file.seek(0)

        try:
            self.client.put_object(
                self.bucket,
                key,
                file,
                length=length,
                content_type=content_type,
            )
        except (S3Error, HTTPError) as exc:
            raise TransferError(f"Failed to upload '{key}': {exc}") from exc

        logger.info("Uploaded %s (%d bytes) to bucket %s", key, length, self.bucket)
        return key

