"""
NoteMirror Backend — File Mirror Service
==========================================

What:  Keeps a `<id>.md` file per note in the mirror directory, holding the
       note body as UTF-8 text.
How:   Async file I/O via aiofiles; every write uses a scoped file handle so
       the file is closed on success and on error.
Who:   NoteService after each table write; Seeder during the mirror reset.
When:  Never on the request read path. The mirror is an out-of-band export.

Directory Layout:
    notes/
    ├── 5f0c2f1e-8c53-4e0e-9d2a-0c7f0b8a9f11.md
    └── 9b1d6a8e-3c4f-4a57-8f0e-52a7c1f0d3b2.md

Concurrency:
    Writes to the same id are not coordinated; the last write wins.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import aiofiles
import aiofiles.os

from app.exceptions import MirrorIOError, NotFoundError

logger = logging.getLogger(__name__)

MIRROR_SUFFIX = ".md"


class FileMirror:
    """
    Manages the mirror directory of note bodies.

    Error mapping:
        FileNotFoundError on delete/read → NotFoundError
        any other OSError                → MirrorIOError
    """

    def __init__(self, root: Union[str, Path]):
        """
        Args:
            root: Mirror directory. Created (with parents) on first write or
                  clear, or by ensure_root().
        """
        self.root = Path(root).resolve()
        logger.info("FileMirror initialized with root=%s", self.root)

    def path_for(self, note_id: str) -> Path:
        return self.root / f"{note_id}{MIRROR_SUFFIX}"

    def ensure_root(self) -> Path:
        """
        Create the mirror directory if missing.

        Raises:
            MirrorIOError: The directory could not be created (a parent is a
                           regular file, permission denied, ...).
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create mirror directory %s: %s", self.root, e)
            raise MirrorIOError(
                message="Failed to create the mirror directory.",
                context={"path": str(self.root), "os_error": str(e)},
            )
        return self.root

    async def write(self, note_id: str, body: str) -> Path:
        """
        Create or overwrite the mirror file for note_id with body.

        Returns:
            Absolute path of the written file.

        Raises:
            MirrorIOError: The directory or file could not be created, or the
                           body is not encodable as UTF-8.
        """
        self.ensure_root()
        path = self.path_for(note_id)
        try:
            # newline="" keeps the body byte-for-byte, no \n translation
            async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
                await f.write(body)
        except (OSError, UnicodeError) as e:
            logger.error("Failed to write mirror file %s: %s", path.name, e)
            raise MirrorIOError(
                message="Failed to write the note's mirror file.",
                context={"note_id": note_id, "path": str(path), "os_error": str(e)},
            )

        logger.debug("Mirrored note %s (%d chars)", note_id, len(body))
        return path

    async def read(self, note_id: str) -> str:
        """Return the mirrored body for note_id. Used by audits, not by requests."""
        path = self.path_for(note_id)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8", newline="") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(resource="mirror file", resource_id=note_id)
        except OSError as e:
            raise MirrorIOError(
                message="Failed to read the note's mirror file.",
                context={"note_id": note_id, "path": str(path), "os_error": str(e)},
            )

    async def delete(self, note_id: str) -> None:
        """
        Remove the mirror file for note_id.

        Raises:
            NotFoundError: The file does not exist.
            MirrorIOError: The file exists but could not be removed.
        """
        path = self.path_for(note_id)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            raise NotFoundError(resource="mirror file", resource_id=note_id)
        except OSError as e:
            logger.error("Failed to delete mirror file %s: %s", path.name, e)
            raise MirrorIOError(
                message="Failed to delete the note's mirror file.",
                context={"note_id": note_id, "path": str(path), "os_error": str(e)},
            )
        logger.debug("Removed mirror file for note %s", note_id)

    async def list_ids(self) -> List[str]:
        """Ids of every `.md` file currently in the mirror directory."""
        try:
            names = await aiofiles.os.listdir(self.root)
        except FileNotFoundError:
            # not created yet, so nothing mirrored
            return []
        except OSError as e:
            raise MirrorIOError(
                message="Failed to list the mirror directory.",
                context={"path": str(self.root), "os_error": str(e)},
            )
        return [
            name[: -len(MIRROR_SUFFIX)]
            for name in names
            if name.endswith(MIRROR_SUFFIX) and (self.root / name).is_file()
        ]

    async def clear(self) -> int:
        """
        Remove every `.md` file in the mirror directory. Other files stay.

        All removals run concurrently and every one is attempted. If any
        failed, the first failure is raised after the rest have finished.

        Returns:
            Number of files removed.
        """
        self.ensure_root()
        note_ids = await self.list_ids()
        results = await asyncio.gather(
            *(aiofiles.os.remove(self.path_for(note_id)) for note_id in note_ids),
            return_exceptions=True,
        )

        first_error: Optional[Exception] = None
        removed = 0
        for note_id, result in zip(note_ids, results):
            if isinstance(result, Exception):
                logger.warning("Could not remove mirror file for %s: %s", note_id, result)
                first_error = first_error or result
            else:
                removed += 1

        logger.info("Cleared %d mirror file(s) from %s", removed, self.root)
        if first_error is not None:
            raise MirrorIOError(
                message="Failed to clear the mirror directory.",
                context={
                    "path": str(self.root),
                    "failed": len(note_ids) - removed,
                    "os_error": str(first_error),
                },
            )
        return removed

    def is_writable(self) -> bool:
        """Lightweight check for the health endpoint."""
        return self.root.is_dir() and os.access(self.root, os.W_OK)
