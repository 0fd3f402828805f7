"""
NoteMirror Backend — Seeder (Bulk Reset)
==========================================

What:  Resets the notes table and the mirror directory to the demo fixtures.
How:   Four linear steps on an injected NoteStore and FileMirror:

           DROP ──▶ CREATE ──▶ POPULATE ──▶ MIRROR-RESET
                                (fan-out)    (clear, then fan-out writes)

       A failing step is logged and recorded in the SeedReport and the next
       step still runs. Fan-out steps wait for every task, then surface the
       first error.
Who:   The `notemirror-seed` entry point (app/seed.py). Development and demo
       use only; never called from the request path.
"""

import asyncio
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from app.schemas.note import NoteRecord, SeedReport
from app.services.file_mirror import FileMirror
from app.services.note_store import NoteStore

logger = logging.getLogger(__name__)


# ── Fixture Notes ─────────────────────────────────────────────────────────
# (title, body, use_random_date). Random dates fall between Jan 1 and now.
SEED_NOTES: List[Tuple[str, str, bool]] = [
    (
        "Meeting Notes",
        "This is an example note. It contains **Markdown**!",
        True,
    ),
    (
        "Make a thing",
        "It's very easy to make some words **bold** and other words *italic* with\n"
        "Markdown. You can even [link to React's website!](https://www.reactjs.org).",
        True,
    ),
    (
        "A note with a very long title because sometimes you need more words",
        "You can write all kinds of [amazing](https://en.wikipedia.org/wiki/The_Amazing)\n"
        "notes in this app! These note live on the server in the `notes` folder.\n"
        "\n"
        "![This app is powered by React](https://upload.wikimedia.org/wikipedia/commons/"
        "thumb/1/18/React_Native_Logo.png/800px-React_Native_Logo.png)",
        True,
    ),
    (
        "I wrote this note today",
        "It was an excellent note.",
        False,
    ),
]


def random_date_between(start: datetime, end: datetime, rng: random.Random) -> datetime:
    return start + (end - start) * rng.random()


def build_fixture_notes(
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[NoteRecord]:
    """Fresh NoteRecords for SEED_NOTES, each with a new id and createdAt == updatedAt."""
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()
    start_of_year = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)

    notes = []
    for title, body, use_random_date in SEED_NOTES:
        stamp = random_date_between(start_of_year, now, rng) if use_random_date else now
        notes.append(
            NoteRecord(
                id=str(uuid.uuid4()),
                title=title,
                body=body,
                created_at=stamp,
                updated_at=stamp,
            )
        )
    return notes


class FanOutError(Exception):
    """First failure of a fan-out, with every per-task result attached."""

    def __init__(self, first: Exception, results: list):
        super().__init__(str(first) or type(first).__name__)
        self.first = first
        self.results = results


async def gather_first_error(aws: Iterable[Awaitable]) -> list:
    """
    Await every awaitable concurrently; raise the first failure once all finish.

    Successful results are returned in input order. A failing task never
    leaves its siblings running unobserved.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception):
            raise FanOutError(result, results) from result
    return results


class Seeder:
    """
    Runs the bulk reset.

    Args:
        store:    Table to drop, recreate and populate.
        mirror:   Mirror directory to clear and repopulate.
        fixtures: Factory for the notes to insert (defaults to build_fixture_notes).

    Report step names: drop, create, populate, mirror_clear, mirror_write.
    """

    def __init__(
        self,
        store: NoteStore,
        mirror: FileMirror,
        fixtures: Callable[[], List[NoteRecord]] = build_fixture_notes,
    ):
        self.store = store
        self.mirror = mirror
        self._fixtures = fixtures

    async def run(self) -> SeedReport:
        report = SeedReport()
        notes = self._fixtures()

        await self._step(report, "drop", self._drop)
        await self._step(report, "create", self.store.create_table)
        await self._step(report, "populate", lambda: self._populate(notes, report))
        await self._step(report, "mirror_clear", self._clear_mirror)
        # only rows that made it into the table get a mirror file
        await self._step(report, "mirror_write", lambda: self._write_mirror(report.notes))

        if report.ok:
            logger.info("Seed complete: %d notes in table and mirror", len(report.notes))
        else:
            logger.warning("Seed finished with errors in: %s", ", ".join(report.errors))
        return report

    async def _step(
        self, report: SeedReport, name: str, action: Callable[[], Awaitable[None]]
    ) -> None:
        logger.info("Seed step: %s", name)
        try:
            await action()
        except Exception as e:
            logger.error("Seed step '%s' failed: %s", name, e, exc_info=True)
            report.errors[name] = str(e) or type(e).__name__

    async def _drop(self) -> None:
        await self.store.drop_table()
        logger.info("Deleted existing notes table (if any)")

    async def _populate(self, notes: List[NoteRecord], report: SeedReport) -> None:
        try:
            await gather_first_error(self.store.put(note) for note in notes)
        except FanOutError as e:
            report.notes = [
                note for note, result in zip(notes, e.results)
                if not isinstance(result, Exception)
            ]
            raise
        report.notes = list(notes)
        logger.info("Inserted %d fixture notes", len(notes))

    async def _clear_mirror(self) -> None:
        logger.info("Deleting old mirror files")
        await self.mirror.clear()

    async def _write_mirror(self, notes: List[NoteRecord]) -> None:
        logger.info("Creating new mirror files...")
        await gather_first_error(self.mirror.write(note.id, note.body) for note in notes)
