# =============================================================================
# Records Router
# =============================================================================
# Read-only access to the line records ingested from one object.
# =============================================================================

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from libs.errors import PersistenceError
from libs.models import LineRecord
from libs.storage import MongoDBStore

from app.services.ingestion import get_mongodb_store

router = APIRouter(tags=["records"])


class RecordListResponse(BaseModel):
    """Records of one object, in insertion order."""

    original_file: str
    records: list[LineRecord]
    total: int


@router.get("/records/{object_key:path}", response_model=RecordListResponse)
async def list_records(
    object_key: str,
    limit: int = Query(100, ge=1, le=1000, description="Maximum records returned"),
    mongo: MongoDBStore = Depends(get_mongodb_store),
) -> RecordListResponse:
    """
    List the records ingested from ``object_key``.

    ``total`` counts every record of the object, not only those returned.
    """
    try:
        records = mongo.records.list_for_file(object_key, limit=limit)
        total = mongo.records.count(object_key)
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return RecordListResponse(original_file=object_key, records=records, total=total)
