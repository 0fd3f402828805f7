"""
NoteMirror Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table.
Who:   Used by SQLNoteStore for CRUD and for table drop/create during seeding.

Table Design:
    - id: UUID4 text generated by NoteService; opaque to everything else
    - title / body: free text; body is Markdown and is mirrored to <id>.md
    - created_at: set once at creation
    - updated_at: refreshed on every update; equals created_at until then
    Timestamps are stored as UTC with timezone.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Note(Base):
    """
    One note row. The table is the authoritative copy of every note.

    Lifecycle:
        1. Inserted by NoteService.create() or the seeder
        2. title/body/updated_at patched by NoteService.update()
        3. Removed by NoteService.delete(), or dropped wholesale by the seeder
    """

    __tablename__ = "notes"

    # Immutable once assigned
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Unique note identifier (UUID4 text)",
    )

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Note title",
    )

    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Markdown body, mirrored to <id>.md",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When this note was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When this note was last updated (UTC)",
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return f"<Note(id={self.id}, title='{self.title}', updated_at='{self.updated_at}')>"
