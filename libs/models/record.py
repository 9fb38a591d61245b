# =============================================================================
# Line Record Model
# =============================================================================
# One persisted document per non-blank line of an ingested object.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field, field_validator


__all__ = ["LineRecord"]


class LineRecord(BaseModel):
    """
    Derived record for a single non-blank input line.

    ``content`` keeps the line as read (minus its delimiter); only the
    blank check trims. ``original_file`` references the job's object key
    by value, no foreign key is enforced.
    """

    content: str = Field(..., description="Raw line text")
    original_file: str = Field(..., description="Source object key")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content cannot be blank")
        return v
