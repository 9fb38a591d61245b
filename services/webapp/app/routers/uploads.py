# =============================================================================
# Upload Router
# =============================================================================
# Stores an uploaded file in the landing bucket under a timestamped key.
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from libs.errors import TransferError
from libs.s3_utils import build_upload_key
from libs.storage import MinIOObjectStore

from app.services.ingestion import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


class UploadResponse(BaseModel):
    """Response for file upload."""

    message: str
    file_name: str
    location: str


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    objects: MinIOObjectStore = Depends(get_object_store),
) -> UploadResponse:
    """
    Upload a file to the landing bucket.

    The returned ``file_name`` is the object key to pass to
    ``POST /process/{object_key}``.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    key = build_upload_key(file.filename)
    content_type = file.content_type or "application/octet-stream"

    try:
        objects.upload(file.file, key, content_type=content_type)
    except TransferError as exc:
        logger.error("Upload of %s failed: %s", key, exc)
        raise HTTPException(status_code=502, detail="Upload failed") from exc

    return UploadResponse(
        message="File uploaded successfully",
        file_name=key,
        location=f"s3://{objects.bucket}/{key}",
    )
