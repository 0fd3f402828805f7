"""
NoteMirror Backend — Database Engine Management
=================================================

What:  Async SQLAlchemy engine and session factory builders, plus the ORM base.
How:   create_engine_from_settings() builds an engine with connection pooling;
       build_session_factory() wraps it. Both are called by create_app() and
       the seeder, and the results are injected into SQLNoteStore.
Who:   app.main (request serving), app.seed (bulk reset), tests.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (tests, local demo) use SQLAlchemy's default SQLite pool and
    skip these options.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Its metadata is what NoteStore.create_table()/drop_table() operate on.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Build the async engine for the configured table store.

    Echoes SQL when log_level is DEBUG.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}

    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    return create_async_engine(settings.database_url, **options)


# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: records stay readable after the session commits,
# so the store can hand them back to callers outside the session
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Application shutdown (lifespan handler) and end of a seed run.
    """
    await engine.dispose()
