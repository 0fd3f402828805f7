"""
NoteMirror Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the note record shape and the API contract.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate OpenAPI documentation. NoteStore returns NoteRecord, so the
       same shape flows from table to transport.

Record shape on the wire:
    { "id": str, "title": str, "body": str, "createdAt": str, "updatedAt": str }
"""

from datetime import datetime, timezone
from typing import Annotated, Dict, List, Optional

from pydantic import AfterValidator, AliasChoices, BaseModel, Field, computed_field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Note Record — shared by NoteStore, NoteService and the routes
# ══════════════════════════════════════════════════════════════════════════


class NoteRecord(BaseModel):
    """
    What:  Full representation of a note as held in the table.
    Who:   Returned by every NoteStore/NoteService read and write.

    Timestamps accept either snake_case (ORM attributes) or camelCase (wire)
    and always serialize as camelCase ISO 8601 strings.
    """
    id: str = Field(description="Unique note identifier")
    title: str = Field(description="Note title")
    body: str = Field(description="Markdown body, mirrored to <id>.md")
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
        description="When the note was created (UTC ISO 8601)",
    )
    updated_at: datetime = Field(
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        serialization_alias="updatedAt",
        description="When the note was last updated (UTC ISO 8601)",
    )

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Some backends (SQLite) drop tzinfo on read; stored values are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the client sends
# ══════════════════════════════════════════════════════════════════════════


def ensure_utf8_text(v: str) -> str:
    """Reject text the table and the mirror file cannot store (unpaired surrogates)."""
    try:
        v.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("must be valid Unicode text without unpaired surrogates")
    return v


# Request text: any string the table and <id>.md can store
NoteText = Annotated[str, AfterValidator(ensure_utf8_text)]


class NoteCreate(BaseModel):
    """Body of POST /api/notes."""
    title: NoteText = Field(description="Note title")
    body: NoteText = Field(default="", description="Markdown body")


class NoteUpdate(BaseModel):
    """Body of PUT /api/notes/{id}. Title and body are replaced wholesale."""
    title: NoteText = Field(description="New note title")
    body: NoteText = Field(default="", description="New Markdown body")


# ══════════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════════


class MirrorAuditReport(BaseModel):
    """
    What:  Differences between the table and the mirror directory.
    Who:   Returned by NoteService.audit() and GET /api/mirror/audit.

    Fields:
        missing:  ids in the table with no <id>.md file
        stale:    ids whose <id>.md content differs from the table body
        orphaned: <id>.md files with no matching table row
    """
    total_notes: int = Field(description="Number of notes in the table")
    missing: List[str] = Field(default_factory=list)
    stale: List[str] = Field(default_factory=list)
    orphaned: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def in_sync(self) -> bool:
        return not (self.missing or self.stale or self.orphaned)


class SeedReport(BaseModel):
    """
    What:  Outcome of one seeder run.

    errors maps a step name (drop, create, populate, mirror_clear, mirror_write)
    to the message of the first error that step hit. An empty dict means every step succeeded.
    """
    notes: List[NoteRecord] = Field(default_factory=list)
    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "note with ID '5f0c...' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Table store connectivity: connected, disconnected")
    mirror: str = Field(description="Mirror directory: writable, unwritable")
    uptime_seconds: float = Field(description="Seconds since service started")
