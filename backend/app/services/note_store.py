"""
NoteMirror Backend — Note Store (Table Adapter)
=================================================

What:  CRUD against the notes table, keyed by note id.
How:   NoteStore is the abstract contract; SQLNoteStore implements it on an
       injected async SQLAlchemy engine. Each operation runs in its
       own session and commits before returning.
Who:   NoteService (request path) and Seeder (bulk reset).

Contract:
    put(note)                 insert or fully replace
    update(id, title, body,   patch an existing row, NotFoundError if absent
           updated_at)
    delete(id)                remove a row, NotFoundError if absent
    get(id)                   one row or NotFoundError
    list()                    every row, order unspecified
    drop_table()              drop the table; a missing table is not an error
    create_table()            create the table if missing
    ping()                    trivial round trip for health checks

Every SQLAlchemyError is wrapped in StoreUnavailableError, as is text the
driver cannot encode on put/update.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.database import Base, build_session_factory
from app.exceptions import NotFoundError, StoreUnavailableError
from app.models.note import Note
from app.schemas.note import NoteRecord

logger = logging.getLogger(__name__)


class NoteStore(ABC):
    """
    Abstract interface for the authoritative note table.

    Implementations:
        - SQLNoteStore: async SQLAlchemy (PostgreSQL in production, SQLite in tests)
        - InMemoryNoteStore (tests/conftest.py): dict-backed fake
    """

    @abstractmethod
    async def put(self, note: NoteRecord) -> NoteRecord:
        ...

    @abstractmethod
    async def update(
        self, note_id: str, title: str, body: str, updated_at: datetime
    ) -> NoteRecord:
        """
        Patch title, body and updated_at of an existing note.

        Returns:
            The patched record, with created_at unchanged.

        Raises:
            NotFoundError: No row exists for note_id.
        """
        ...

    @abstractmethod
    async def delete(self, note_id: str) -> None:
        ...

    @abstractmethod
    async def get(self, note_id: str) -> NoteRecord:
        ...

    @abstractmethod
    async def list(self) -> List[NoteRecord]:
        ...

    @abstractmethod
    async def drop_table(self) -> None:
        ...

    @abstractmethod
    async def create_table(self) -> None:
        ...

    @abstractmethod
    async def ping(self) -> None:
        ...


class SQLNoteStore(NoteStore):
    """
    NoteStore backed by the `notes` table via async SQLAlchemy.

    The engine is injected so the same class serves the app, the seeder and
    the tests against different databases.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = build_session_factory(engine)

    async def put(self, note: NoteRecord) -> NoteRecord:
        # delete-then-insert keeps the first statement a write, so concurrent
        # puts on SQLite queue on the write lock instead of failing an upgrade
        try:
            async with self._session_factory() as session:
                await session.execute(delete(Note).where(Note.id == note.id))
                session.add(
                    Note(
                        id=note.id,
                        title=note.title,
                        body=note.body,
                        created_at=note.created_at,
                        updated_at=note.updated_at,
                    )
                )
                await session.commit()
        except (SQLAlchemyError, UnicodeError) as e:
            raise self._unavailable("put", e, note_id=note.id)

        logger.debug("Stored note %s", note.id)
        return note

    async def update(
        self, note_id: str, title: str, body: str, updated_at: datetime
    ) -> NoteRecord:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    update(Note)
                    .where(Note.id == note_id)
                    .values(title=title, body=body, updated_at=updated_at)
                )
                if result.rowcount == 0:
                    await session.rollback()
                    raise NotFoundError(resource="note", resource_id=note_id)

                row = await session.get(Note, note_id)
                await session.commit()
        except (SQLAlchemyError, UnicodeError) as e:
            raise self._unavailable("update", e, note_id=note_id)

        return NoteRecord.model_validate(row)

    async def delete(self, note_id: str) -> None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(Note).where(Note.id == note_id))
                if result.rowcount == 0:
                    await session.rollback()
                    raise NotFoundError(resource="note", resource_id=note_id)
                await session.commit()
        except SQLAlchemyError as e:
            raise self._unavailable("delete", e, note_id=note_id)

    async def get(self, note_id: str) -> NoteRecord:
        try:
            async with self._session_factory() as session:
                row = await session.get(Note, note_id)
        except SQLAlchemyError as e:
            raise self._unavailable("get", e, note_id=note_id)

        if row is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return NoteRecord.model_validate(row)

    async def list(self) -> List[NoteRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Note))
                rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._unavailable("list", e)

        return [NoteRecord.model_validate(row) for row in rows]

    # ── Table Lifecycle ───────────────────────────────────────────────────

    async def drop_table(self) -> None:
        # checkfirst: dropping a table that does not exist is a no-op
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Note.__table__.drop, checkfirst=True)
        except SQLAlchemyError as e:
            raise self._unavailable("drop_table", e)
        logger.info("Dropped table %s (if it existed)", Note.__tablename__)

    async def create_table(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        except SQLAlchemyError as e:
            raise self._unavailable("create_table", e)
        logger.info("Ensured table %s exists", Note.__tablename__)

    async def ping(self) -> None:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise self._unavailable("ping", e)

    @staticmethod
    def _unavailable(operation: str, error: Exception, **context) -> StoreUnavailableError:
        logger.error("Note store %s failed: %s", operation, error)
        return StoreUnavailableError(
            context={"operation": operation, "error_type": type(error).__name__, **context},
        )
