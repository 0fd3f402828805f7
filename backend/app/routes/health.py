"""
NoteMirror Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and container probes.
How:   Pings the table store and checks the mirror directory is writable.

Status levels:
    - healthy:   table reachable and mirror writable (HTTP 200)
    - degraded:  table reachable, mirror not writable (HTTP 200)
    - unhealthy: table unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app import __version__
from app.exceptions import StoreUnavailableError
from app.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request):
    db_status = "connected"
    mirror_status = "writable"
    overall = "healthy"

    # ── Check Table Store ─────────────────────────────────────────────────
    try:
        await request.app.state.note_store.ping()
    except StoreUnavailableError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: note store unreachable: %s", e.context)

    # ── Check Mirror Directory ────────────────────────────────────────────
    if not request.app.state.file_mirror.is_writable():
        mirror_status = "unwritable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: mirror directory is not writable")

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        mirror=mirror_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
