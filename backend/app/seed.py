"""
NoteMirror Backend — Seed Command
===================================

What:  Out-of-band entry point that resets the notes table and the mirror
       directory to the demo fixtures.
How:   Builds its own engine, SQLNoteStore and FileMirror from Settings and
       runs Seeder. Not part of the request-serving surface.

Usage:
    notemirror-seed
    python -m app.seed --notes-path ./notes --database-url sqlite+aiosqlite:///./notes.db

Exit status is 0 when every step succeeded, 1 otherwise.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from app.config import Settings, settings as default_settings
from app.database import create_engine_from_settings, dispose_engine
from app.logging_config import setup_logging
from app.schemas.note import SeedReport
from app.services.file_mirror import FileMirror
from app.services.note_store import SQLNoteStore
from app.services.seeder import Seeder

logger = logging.getLogger(__name__)


async def run_seed(config: Settings) -> SeedReport:
    engine = create_engine_from_settings(config)
    try:
        seeder = Seeder(
            store=SQLNoteStore(engine),
            mirror=FileMirror(config.notes_path),
        )
        return await seeder.run()
    finally:
        await dispose_engine(engine)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="notemirror-seed",
        description="Drop, recreate and repopulate the notes table and mirror directory.",
    )
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--notes-path", help="Override NOTES_PATH (mirror directory)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    overrides = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.notes_path:
        overrides["notes_path"] = args.notes_path
    config = default_settings.model_copy(update=overrides)

    setup_logging(config.log_level)
    report = asyncio.run(run_seed(config))

    for note in report.notes:
        logger.info("Seeded %s  %s", note.id, note.title)
    for step, message in report.errors.items():
        logger.error("Step %s failed: %s", step, message)

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
