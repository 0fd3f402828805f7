"""
NoteMirror Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app(settings) builds the engine, NoteStore,
       FileMirror and NoteService, stores them on app.state, and wires
       middleware, exception handlers and routers around them.
Who:   uvicorn (uvicorn app.main:app) and the endpoint tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Logging        │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────┐ ┌───────────────┐ ┌──────────┐  │
    │  │ /api/notes ... │ │ /api/mirror/* │ │ /health  │  │
    │  └────────────────┘ └───────────────┘ └──────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ NotFound→404 │ MirrorSync→500 │ Store→500    │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → ensure notes table (optional) → ensure mirror dir → log ready
    Shutdown: dispose database engine
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import create_engine_from_settings, dispose_engine
from app.exceptions import (
    MirrorIOError,
    MirrorSyncError,
    NotFoundError,
    NoteMirrorError,
    StoreUnavailableError,
)
from app.logging_config import setup_logging
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, notes
from app.services.file_mirror import FileMirror
from app.services.note_service import NoteService
from app.services.note_store import SQLNoteStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Create the notes table if missing (create_schema_on_startup)
        3. Create the mirror directory if missing
        4. Log successful startup

    Shutdown:
        1. Dispose database engine (close all pooled connections)
    """
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("NoteMirror Backend starting up...")

    if config.create_schema_on_startup:
        try:
            await app.state.note_store.create_table()
        except StoreUnavailableError as e:
            # Keep serving: /health reports the store as disconnected
            logger.error("Could not ensure notes table: %s", e.context)

    try:
        app.state.file_mirror.ensure_root()
    except MirrorIOError as e:
        # Keep serving: /health reports the mirror as unwritable
        logger.error("Could not create mirror directory: %s", e.context)

    logger.info("Mirror directory: %s", app.state.file_mirror.root)
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteMirror Backend shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        RequestValidationError → 422 Unprocessable Entity (field errors only)
        NotFoundError          → 404 Not Found
        MirrorSyncError        → 500, body names the note that was saved
        MirrorIOError          → 500 Internal Server Error
        StoreUnavailableError  → 500 Internal Server Error
        NoteMirrorError (base) → 500 Internal Server Error
        Exception (fallback)   → 500 Internal Server Error

    Exception handlers never expose file paths or driver errors in the
    response. Details are logged server-side.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        """The offending input is not echoed back; it may not be encodable."""
        rid = request_id_var.get("")
        fields = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", rid, fields)
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "The request body is invalid.",
                "details": {"fields": fields},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(MirrorSyncError)
    async def handle_mirror_sync(request: Request, exc: MirrorSyncError):
        """Table write succeeded, mirror write failed. Tell the caller which note."""
        rid = request_id_var.get("")
        logger.error("[%s] Mirror sync error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "mirror_sync_error",
                "message": exc.message,
                "details": {"note_id": exc.note.id, "operation": exc.operation},
                "request_id": rid,
            },
        )

    @app.exception_handler(MirrorIOError)
    async def handle_mirror_io(request: Request, exc: MirrorIOError):
        rid = request_id_var.get("")
        logger.error("[%s] Mirror I/O error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        rid = request_id_var.get("")
        logger.error("[%s] Note store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(NoteMirrorError)
    async def handle_app_error(request: Request, exc: NoteMirrorError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all. Stack trace is logged server-side only."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to build from. Defaults to the environment-loaded
                app.config.settings.

    Returns:
        Configured FastAPI instance. Its collaborators are reachable as
        app.state.engine, app.state.note_store, app.state.file_mirror and
        app.state.note_service.
    """
    config = config or default_settings

    app = FastAPI(
        title="NoteMirror API",
        description=(
            "Notes API backed by a table store, with every note body mirrored "
            "to a Markdown file on disk."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Collaborators ─────────────────────────────────────────────────────
    engine = create_engine_from_settings(config)
    note_store = SQLNoteStore(engine)
    file_mirror = FileMirror(config.notes_path)

    app.state.settings = config
    app.state.engine = engine
    app.state.note_store = note_store
    app.state.file_mirror = file_mirror
    app.state.note_service = NoteService(store=note_store, mirror=file_mirror)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `app.main:app` to be importable
app = create_app()
