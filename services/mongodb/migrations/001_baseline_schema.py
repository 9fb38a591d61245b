"""
Migration 001: Baseline Schema

Creates the two independent collections used by the ingestion service:

- jobs: one document per ingestion job (status lifecycle, FIFO claim index)
- records: one document per non-blank ingested line

Schema constants are FROZEN - do not modify. Create new migration for changes.
"""

from pymongo.database import Database
from pymongo.errors import CollectionInvalid

VERSION = "001"

# =============================================================================
# FROZEN SCHEMA CONSTANTS - DO NOT MODIFY
# =============================================================================

JOBS_SCHEMA_V001 = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["object_key", "status", "created_at"],
        "properties": {
            "object_key": {"bsonType": "string", "minLength": 1},
            "status": {"enum": ["PENDING", "PROCESSING", "COMPLETED", "FAILED"]},
            "created_at": {"bsonType": "date"},
            "started_at": {"bsonType": ["date", "null"]},
            "completed_at": {"bsonType": ["date", "null"]},
            "updated_at": {"bsonType": ["date", "null"]},
            "processed_lines": {"bsonType": ["int", "long", "null"], "minimum": 0},
            "error": {"bsonType": ["string", "null"]},
        },
    }
}

RECORDS_SCHEMA_V001 = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["content", "original_file"],
        "properties": {
            "content": {"bsonType": "string"},
            "original_file": {"bsonType": "string"},
        },
    }
}


def _ensure_collection(db: Database, name: str, validator: dict) -> None:
    try:
        db.create_collection(
            name,
            validator=validator,
            validationLevel="strict",
            validationAction="error",
        )
    except CollectionInvalid:
        db.command(
            "collMod",
            name,
            validator=validator,
            validationLevel="strict",
            validationAction="error",
        )


def up(db: Database) -> None:
    """Apply baseline schema migration."""

    # Jobs collection
    _ensure_collection(db, "jobs", JOBS_SCHEMA_V001)

    # Claim order: oldest PENDING first, ties by insertion order
    db.jobs.create_index(
        [("status", 1), ("created_at", 1), ("_id", 1)],
        name="status_1_created_at_1_id_1",
    )
    db.jobs.create_index([("object_key", 1)])
    db.jobs.create_index([("created_at", -1)])

    # Records collection
    _ensure_collection(db, "records", RECORDS_SCHEMA_V001)

    db.records.create_index([("original_file", 1)])


def down(db: Database) -> None:
    """Drop the baseline collections."""
    db.drop_collection("records")
    db.drop_collection("jobs")
