# =============================================================================
# S3 Key Utilities
# =============================================================================
# Helpers for building and normalising object keys in the landing bucket.
# =============================================================================

"""
Object key utilities for the ingestion service.

This module provides functions for:
- Parsing S3 paths into bucket and key components
- Normalising a job's object key (plain key or s3:// path)
- Building timestamp-prefixed keys for uploads
"""

import time
from pathlib import PurePosixPath
from typing import Optional, Tuple

__all__ = [
    "parse_s3_path",
    "extract_s3_key",
    "build_upload_key",
]


def parse_s3_path(s3_path: str) -> Tuple[str, str]:
    """
    Parse S3 path into bucket and key components.

    Args:
        s3_path: Full S3 path (e.g., "s3://landing-zone/logs/app.log")

    Returns:
        Tuple of (bucket, key) e.g., ("landing-zone", "logs/app.log")

    Raises:
        ValueError: If path is not valid s3:// format or missing key

    Examples:
        >>> parse_s3_path("s3://landing-zone/logs/app.log")
        ('landing-zone', 'logs/app.log')
    """
    if not s3_path.startswith("s3://"):
        raise ValueError(
            f"Invalid S3 path format: '{s3_path}'. Must start with 's3://'"
        )

    path_without_prefix = s3_path[5:]  # Remove "s3://"
    parts = path_without_prefix.split("/", 1)

    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(
            f"Invalid S3 path format: '{s3_path}'. Expected 's3://bucket/key'"
        )

    return parts[0], parts[1]


def extract_s3_key(s3_path: str, bucket: Optional[str] = None) -> str:
    """
    Extract the key portion from an S3 path.

    For values that are already keys (not s3:// format), returns them with
    any leading slash removed.

    Args:
        s3_path: Full S3 path or plain key
        bucket: If given, an s3:// path must point into this bucket

    Raises:
        ValueError: If the result is empty or the bucket does not match

    Examples:
        >>> extract_s3_key("s3://landing-zone/logs/app.log")
        'logs/app.log'
        >>> extract_s3_key("/logs/app.log")
        'logs/app.log'
    """
    if s3_path.startswith("s3://"):
        path_bucket, key = parse_s3_path(s3_path)
        if bucket is not None and path_bucket != bucket:
            raise ValueError(
                f"Object '{s3_path}' is not in bucket '{bucket}'"
            )
        return key

    key = s3_path.lstrip("/")
    if not key.strip():
        raise ValueError("Object key cannot be empty")
    return key


def build_upload_key(filename: Optional[str], now_ms: Optional[int] = None) -> str:
    """
    Build the object key for an uploaded file: ``<epoch-millis>-<filename>``.

    Directory components of the client-supplied name are dropped.

    Examples:
        >>> build_upload_key("data.txt", now_ms=1700000000000)
        '1700000000000-data.txt'
    """
    name = PurePosixPath((filename or "").replace("\\", "/")).name or "unnamed"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{name}"
