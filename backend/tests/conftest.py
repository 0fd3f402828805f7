"""
NoteMirror Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mirror:        FileMirror on a fresh temporary directory
    ├── memory_store:  InMemoryNoteStore (dict-backed NoteStore fake)
    ├── clock:         FakeClock handing out strictly increasing UTC times
    ├── note_service:  NoteService(memory_store, mirror, clock)
    ├── sql_store:     SQLNoteStore on a temporary SQLite file (aiosqlite)
    └── test_client:   HTTPX AsyncClient bound to a fresh create_app()
"""

import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

# Override settings for testing BEFORE any app imports
_TEST_ROOT = tempfile.mkdtemp(prefix="notemirror_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/default.db"
os.environ["NOTES_PATH"] = os.path.join(_TEST_ROOT, "notes")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.database import create_engine_from_settings
from app.exceptions import NotFoundError, StoreUnavailableError
from app.schemas.note import NoteRecord
from app.services.file_mirror import FileMirror
from app.services.note_service import NoteService
from app.services.note_store import NoteStore, SQLNoteStore


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════


class InMemoryNoteStore(NoteStore):
    """
    Dict-backed NoteStore.

    fail_on maps an operation name ("put", "update", "delete", "get", "list",
    "drop_table", "create_table", "ping") to an exception raised when that
    operation is called. Operations on a dropped table raise
    StoreUnavailableError, like the SQL backend.
    """

    def __init__(self) -> None:
        self.rows: Dict[str, NoteRecord] = {}
        self.table_exists = True
        self.fail_on: Dict[str, Exception] = {}

    async def _enter(self, operation: str) -> None:
        await asyncio.sleep(0)
        if operation in self.fail_on:
            raise self.fail_on[operation]
        if not self.table_exists and operation not in ("drop_table", "create_table"):
            raise StoreUnavailableError(context={"operation": operation, "error": "no such table"})

    async def put(self, note: NoteRecord) -> NoteRecord:
        await self._enter("put")
        self.rows[note.id] = note.model_copy()
        return note

    async def update(self, note_id, title, body, updated_at) -> NoteRecord:
        await self._enter("update")
        if note_id not in self.rows:
            raise NotFoundError(resource="note", resource_id=note_id)
        updated = self.rows[note_id].model_copy(
            update={"title": title, "body": body, "updated_at": updated_at}
        )
        self.rows[note_id] = updated
        return updated.model_copy()

    async def delete(self, note_id: str) -> None:
        await self._enter("delete")
        if self.rows.pop(note_id, None) is None:
            raise NotFoundError(resource="note", resource_id=note_id)

    async def get(self, note_id: str) -> NoteRecord:
        await self._enter("get")
        if note_id not in self.rows:
            raise NotFoundError(resource="note", resource_id=note_id)
        return self.rows[note_id].model_copy()

    async def list(self) -> List[NoteRecord]:
        await self._enter("list")
        return [note.model_copy() for note in self.rows.values()]

    async def drop_table(self) -> None:
        await self._enter("drop_table")
        self.rows.clear()
        self.table_exists = False

    async def create_table(self) -> None:
        await self._enter("create_table")
        self.table_exists = True

    async def ping(self) -> None:
        await self._enter("ping")


class FakeClock:
    """Returns a new UTC timestamp one minute later on every call."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def mirror_root(tmp_path):
    return tmp_path / "notes"


@pytest.fixture
def mirror(mirror_root):
    file_mirror = FileMirror(mirror_root)
    file_mirror.ensure_root()
    return file_mirror


@pytest.fixture
def memory_store():
    return InMemoryNoteStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def note_service(memory_store, mirror, clock):
    return NoteService(store=memory_store, mirror=mirror, clock=clock)


@pytest.fixture
def sqlite_settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/notes.db",
        notes_path=str(tmp_path / "notes"),
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def sql_store(sqlite_settings):
    """SQLNoteStore on a temporary SQLite file with the notes table created."""
    engine = create_engine_from_settings(sqlite_settings)
    store = SQLNoteStore(engine)
    await store.create_table()
    yield store
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(sqlite_settings):
    """
    HTTPX AsyncClient routed straight into a fresh app instance.

    ASGITransport does not run the lifespan, so the notes table and the
    mirror directory are created here.
    The app is exposed as client.app_under_test for direct state access.
    """
    from app.main import create_app

    app = create_app(sqlite_settings)
    await app.state.note_store.create_table()
    app.state.file_mirror.ensure_root()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        client.app_under_test = app
        yield client

    await app.state.engine.dispose()
