"""
NoteMirror Backend — Notes Route Handlers
===========================================

What:  CRUD endpoints for notes plus the read-only mirror audit.
How:   Extracts path params and bodies, delegates to NoteService, returns JSON.
       NoteService comes from app.state via the get_note_service dependency.

Routes:
    POST   /api/notes             create         → 201 Note
    GET    /api/notes             list           → 200 [Note]
    GET    /api/notes/{note_id}   get            → 200 Note | 404
    PUT    /api/notes/{note_id}   update         → 200 Note | 404
    DELETE /api/notes/{note_id}   delete         → 204      | 404
    GET    /api/mirror/audit      audit          → 200 MirrorAuditReport
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from app.schemas.note import (
    ErrorResponse,
    MirrorAuditReport,
    NoteCreate,
    NoteRecord,
    NoteUpdate,
)
from app.services.note_service import NoteService

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Notes"])


def get_note_service(request: Request) -> NoteService:
    """Dependency returning the NoteService built by create_app()."""
    return request.app.state.note_service


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteRecord,
    responses={
        201: {"description": "Note created", "model": NoteRecord},
        500: {"description": "Store or mirror failure", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    service: NoteService = Depends(get_note_service),
) -> NoteRecord:
    """
    Create a note with a server-assigned id and mirror its body to <id>.md.

    A 500 with error "mirror_sync_error" means the note was saved in the
    table but its mirror file was not written; details.note_id names it.
    """
    note = await service.create(title=payload.title, body=payload.body)
    logger.info("Created note %s", note.id)
    return note


@router.get(
    "/notes",
    response_model=List[NoteRecord],
    responses={
        200: {"description": "Every note, order unspecified"},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List all notes",
)
async def list_notes(
    response: Response,
    service: NoteService = Depends(get_note_service),
) -> List[NoteRecord]:
    notes = await service.list()
    response.headers["X-Total-Count"] = str(len(notes))
    return notes


@router.get(
    "/notes/{note_id}",
    response_model=NoteRecord,
    responses={
        200: {"description": "The note", "model": NoteRecord},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    service: NoteService = Depends(get_note_service),
) -> NoteRecord:
    return await service.get(note_id)


@router.put(
    "/notes/{note_id}",
    response_model=NoteRecord,
    responses={
        200: {"description": "The updated note", "model": NoteRecord},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Store or mirror failure", "model": ErrorResponse},
    },
    summary="Replace a note's title and body",
)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    service: NoteService = Depends(get_note_service),
) -> NoteRecord:
    note = await service.update(note_id, title=payload.title, body=payload.body)
    logger.info("Updated note %s", note.id)
    return note


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    responses={
        204: {"description": "Note deleted"},
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a note and its mirror file",
)
async def delete_note(
    note_id: str,
    service: NoteService = Depends(get_note_service),
) -> Response:
    await service.delete(note_id)
    logger.info("Deleted note %s", note_id)
    return Response(status_code=204)


@router.get(
    "/mirror/audit",
    response_model=MirrorAuditReport,
    summary="Compare the table with the mirror directory",
    description=(
        "Lists notes whose mirror file is missing or stale and mirror files with "
        "no matching note. Read-only; nothing is repaired."
    ),
)
async def audit_mirror(
    service: NoteService = Depends(get_note_service),
) -> MirrorAuditReport:
    return await service.audit()
