# =============================================================================
# Line Reader
# =============================================================================
# Turns a sequential byte stream into a lazy sequence of text lines.
# =============================================================================

"""
Streaming line framing over stored objects.

Lines are decoded incrementally through ``io.TextIOWrapper`` with universal
newline handling, so ``\\n``, ``\\r\\n`` and ``\\r`` all terminate a line and
never appear in the yielded text. Only one buffered chunk of the object is
held in memory at a time.
"""

import io
import logging
from typing import BinaryIO, Iterator

from urllib3.exceptions import HTTPError

from libs.errors import TransferError
from libs.ingestion.protocols import ObjectStore

__all__ = ["iter_lines", "ObjectLineSource"]

logger = logging.getLogger(__name__)


def iter_lines(
    stream: BinaryIO,
    encoding: str = "utf-8",
    errors: str = "replace",
) -> Iterator[str]:
    """
    Yield the lines of ``stream`` one at a time, without delimiters.

    Args:
        stream: Readable binary stream (HTTP response body, file, BytesIO)
        encoding: Text encoding of the stream
        errors: Decoding error policy, undecodable bytes are replaced by default

    Yields:
        Each line's text without its terminator; a final unterminated line is
        yielded as-is

    Raises:
        TransferError: If the underlying stream fails mid-read
    """
    if not hasattr(stream, "read1"):
        stream = io.BufferedReader(stream)

    text = io.TextIOWrapper(stream, encoding=encoding, errors=errors, newline=None)
    try:
        for line in text:
            yield line[:-1] if line.endswith("\n") else line
    except (HTTPError, OSError) as exc:
        raise TransferError(f"Stream interrupted: {exc}") from exc
    finally:
        # The stream's owner closes it.
        if not text.closed:
            text.detach()


class ObjectLineSource:
    """
    Restartable-from-source line sequence for one stored object.

    Every iteration re-opens the object from its first byte; there is no
    checkpointing. A single iteration is lazy and single-pass, and releases
    the underlying connection when exhausted or closed.
    """

    def __init__(self, store: ObjectStore, key: str, encoding: str = "utf-8") -> None:
        self.store = store
        self.key = key
        self.encoding = encoding

    def __iter__(self) -> Iterator[str]:
        logger.debug("Opening %s for line streaming", self.key)
        with self.store.open_read_stream(self.key) as stream:
            yield from iter_lines(stream, encoding=self.encoding)

    def __repr__(self) -> str:
        return f"ObjectLineSource(key={self.key!r})"
