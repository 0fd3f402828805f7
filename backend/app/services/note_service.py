"""
NoteMirror Backend — Note Service (Dual-Write Orchestrator)
=============================================================

What:  Create/update/delete/get/list for notes, writing each change to the
       table (NoteStore) and then to the mirror directory (FileMirror).
How:   Composes an injected NoteStore, FileMirror and clock.
Who:   Called by the notes route handlers.

Write Ordering:
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐
    │  Route   │───▶│  NoteStore   │───▶│  FileMirror  │
    │          │    │  (table)     │    │  (<id>.md)   │
    └──────────┘    └──────────────┘    └──────────────┘

    The table is always written first, so it is never behind the mirror.
    The two steps are not atomic:

    Step fails          Outcome
    ─────────────────   ───────────────────────────────────────────────
    table (NotFound)    NotFoundError, mirror untouched
    table (backend)     StoreUnavailableError, mirror untouched
    mirror write        MirrorSyncError carrying the saved note
    mirror delete       logged warning, delete still succeeds

    Reads (get/list) come from the table only.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List

from app.exceptions import MirrorIOError, MirrorSyncError, NoteMirrorError, NotFoundError
from app.schemas.note import MirrorAuditReport, NoteRecord
from app.services.file_mirror import FileMirror
from app.services.note_store import NoteStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_note_id() -> str:
    return str(uuid.uuid4())


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - create() / update(): table write, then mirror write
        - delete(): table delete, then best-effort mirror delete
        - get() / list(): table reads
        - audit(): compare table and mirror without repairing anything

    Dependencies are passed in, so tests can substitute an in-memory store,
    a temporary mirror directory and a fixed clock.
    """

    def __init__(
        self,
        store: NoteStore,
        mirror: FileMirror,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_note_id,
    ):
        self.store = store
        self.mirror = mirror
        self._clock = clock
        self._new_id = id_factory

    async def create(self, title: str, body: str) -> NoteRecord:
        """
        Create a note with a fresh id; createdAt == updatedAt.

        Raises:
            StoreUnavailableError: The table write failed (nothing mirrored).
            MirrorSyncError: The note is in the table but <id>.md was not written.
        """
        now = self._clock()
        note = NoteRecord(
            id=self._new_id(),
            title=title,
            body=body,
            created_at=now,
            updated_at=now,
        )

        note = await self.store.put(note)
        logger.info("Note %s created in table", note.id)

        await self._mirror_body(note, operation="create")
        return note

    async def update(self, note_id: str, title: str, body: str) -> NoteRecord:
        """
        Replace title and body of an existing note and refresh updatedAt.

        Raises:
            NotFoundError: No note with note_id (raised before any mirror write).
            StoreUnavailableError: The table write failed.
            MirrorSyncError: The table holds the new body but <id>.md is stale.
        """
        note = await self.store.update(
            note_id, title=title, body=body, updated_at=self._clock()
        )
        logger.info("Note %s updated in table", note.id)

        await self._mirror_body(note, operation="update")
        return note

    async def delete(self, note_id: str) -> None:
        """
        Delete a note from the table, then remove its mirror file.

        The table result decides the outcome. A mirror file that is already
        gone or cannot be removed is logged and otherwise ignored.

        Raises:
            NotFoundError: No note with note_id.
            StoreUnavailableError: The table delete failed.
        """
        await self.store.delete(note_id)
        logger.info("Note %s deleted from table", note_id)

        try:
            await self.mirror.delete(note_id)
        except NoteMirrorError as e:
            logger.warning(
                "Note %s deleted but its mirror file was not removed: %s",
                note_id,
                e.message,
            )

    async def get(self, note_id: str) -> NoteRecord:
        return await self.store.get(note_id)

    async def list(self) -> List[NoteRecord]:
        return await self.store.list()

    async def audit(self) -> MirrorAuditReport:
        """
        Compare every table row with the mirror directory.

        Reports ids with no mirror file, ids whose mirror content differs from
        the table body, and mirror files whose id is not in the table. Nothing
        is repaired.
        """
        notes = await self.store.list()
        mirrored_ids = set(await self.mirror.list_ids())

        report = MirrorAuditReport(total_notes=len(notes))
        for note in notes:
            if note.id not in mirrored_ids:
                report.missing.append(note.id)
                continue
            try:
                mirrored_body = await self.mirror.read(note.id)
            except NotFoundError:
                # removed between listing and reading
                report.missing.append(note.id)
                continue
            if mirrored_body != note.body:
                report.stale.append(note.id)

        table_ids = {note.id for note in notes}
        report.orphaned = sorted(mirrored_ids - table_ids)

        if not report.in_sync:
            logger.warning(
                "Mirror audit: %d missing, %d stale, %d orphaned",
                len(report.missing),
                len(report.stale),
                len(report.orphaned),
            )
        return report

    async def _mirror_body(self, note: NoteRecord, operation: str) -> None:
        try:
            await self.mirror.write(note.id, note.body)
        except MirrorIOError as e:
            logger.error(
                "Mirror out of sync after %s of note %s: %s",
                operation,
                note.id,
                e.message,
            )
            raise MirrorSyncError(note=note, operation=operation, context=dict(e.context))
