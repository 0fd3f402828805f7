"""
NoteMirror Backend — File Mirror Unit Tests
=============================================

What:  Tests for FileMirror (write, read, delete, list_ids, clear).
How:   Every test runs against its own temporary mirror directory.

Test Strategy:
    ✅ Bodies are written byte-for-byte as UTF-8 and overwritten in place
    ✅ OS failures surface as MirrorIOError, missing files as NotFoundError
    ✅ Only `.md` files count as mirror files
    ✅ clear() attempts every removal even when one fails
"""

import os
from unittest.mock import patch

import pytest

from app.exceptions import MirrorIOError, NotFoundError
from app.services.file_mirror import FileMirror


class TestFileMirrorWrite:
    """Tests for creating and overwriting mirror files."""

    @pytest.mark.asyncio
    async def test_write_creates_md_file(self, mirror):
        path = await mirror.write("abc", "hello")

        assert path == mirror.root / "abc.md"
        assert path.read_text(encoding="utf-8") == "hello"

    @pytest.mark.asyncio
    async def test_write_keeps_body_exactly(self, mirror):
        """Non-ASCII text and CRLF line endings survive unchanged."""
        body = "Grüße **bold**\r\nsecond line 📝\n"
        path = await mirror.write("abc", body)

        assert path.read_bytes() == body.encode("utf-8")

    @pytest.mark.asyncio
    async def test_write_overwrites_existing_file(self, mirror):
        await mirror.write("abc", "a much longer first body")
        await mirror.write("abc", "short")

        assert (mirror.root / "abc.md").read_text(encoding="utf-8") == "short"

    @pytest.mark.asyncio
    async def test_write_empty_body(self, mirror):
        path = await mirror.write("empty", "")
        assert path.exists()
        assert path.read_text(encoding="utf-8") == ""

    @pytest.mark.asyncio
    async def test_write_failure_raises_mirror_io_error(self, mirror):
        """A directory squatting on the target path makes the open fail."""
        mirror.path_for("blocked").mkdir()

        with pytest.raises(MirrorIOError) as exc_info:
            await mirror.write("blocked", "body")

        assert exc_info.value.context["note_id"] == "blocked"

    @pytest.mark.asyncio
    async def test_unencodable_body_raises_mirror_io_error(self, mirror):
        """An unpaired surrogate cannot be written as UTF-8."""
        with pytest.raises(MirrorIOError) as exc_info:
            await mirror.write("bad", "bad \ud800 body")

        assert exc_info.value.context["note_id"] == "bad"

    @pytest.mark.asyncio
    async def test_write_creates_missing_root(self, tmp_path):
        root = tmp_path / "nested" / "notes"
        mirror = FileMirror(root)
        assert not root.exists()

        await mirror.write("abc", "x")

        assert (root / "abc.md").read_text(encoding="utf-8") == "x"


class TestFileMirrorRoot:
    """Tests for creating the mirror directory."""

    def test_ensure_root_creates_nested_directory(self, tmp_path):
        root = tmp_path / "nested" / "notes"
        FileMirror(root).ensure_root()
        assert root.is_dir()

    def test_construction_does_not_touch_disk(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a regular file")

        mirror = FileMirror(blocker / "notes")

        assert mirror.is_writable() is False

    def test_ensure_root_under_a_file_raises_mirror_io_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a regular file")

        with pytest.raises(MirrorIOError):
            FileMirror(blocker / "notes").ensure_root()

    @pytest.mark.asyncio
    async def test_write_and_clear_under_a_file_raise_mirror_io_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a regular file")
        mirror = FileMirror(blocker / "notes")

        with pytest.raises(MirrorIOError):
            await mirror.write("abc", "x")
        with pytest.raises(MirrorIOError):
            await mirror.clear()

    @pytest.mark.asyncio
    async def test_list_ids_missing_root_is_empty(self, tmp_path):
        assert await FileMirror(tmp_path / "never-created").list_ids() == []


class TestFileMirrorReadDelete:
    """Tests for read() and delete()."""

    @pytest.mark.asyncio
    async def test_read_returns_body(self, mirror):
        await mirror.write("abc", "line one\nline two")
        assert await mirror.read("abc") == "line one\nline two"

    @pytest.mark.asyncio
    async def test_read_missing_raises_not_found(self, mirror):
        with pytest.raises(NotFoundError):
            await mirror.read("nope")

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, mirror):
        await mirror.write("abc", "x")
        await mirror.delete("abc")
        assert not mirror.path_for("abc").exists()

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, mirror):
        with pytest.raises(NotFoundError) as exc_info:
            await mirror.delete("nope")
        assert exc_info.value.resource_id == "nope"


class TestFileMirrorDirectory:
    """Tests for list_ids() and clear()."""

    @pytest.mark.asyncio
    async def test_list_ids_only_md_files(self, mirror):
        await mirror.write("one", "1")
        await mirror.write("two", "2")
        (mirror.root / "readme.txt").write_text("not a note")
        (mirror.root / "folder.md").mkdir()

        assert sorted(await mirror.list_ids()) == ["one", "two"]

    @pytest.mark.asyncio
    async def test_list_ids_empty(self, mirror):
        assert await mirror.list_ids() == []

    @pytest.mark.asyncio
    async def test_clear_removes_only_md_files(self, mirror):
        await mirror.write("one", "1")
        await mirror.write("two", "2")
        (mirror.root / "keep.txt").write_text("keep me")

        removed = await mirror.clear()

        assert removed == 2
        assert await mirror.list_ids() == []
        assert (mirror.root / "keep.txt").read_text() == "keep me"

    @pytest.mark.asyncio
    async def test_clear_empty_directory(self, mirror):
        assert await mirror.clear() == 0

    @pytest.mark.asyncio
    async def test_clear_attempts_every_file_when_one_fails(self, mirror):
        for note_id in ("a", "b", "c"):
            await mirror.write(note_id, note_id)
        blocked = mirror.path_for("b")

        async def flaky_remove(path, *args, **kwargs):
            if str(path) == str(blocked):
                raise PermissionError(13, "Permission denied", str(path))
            os.remove(path)

        with patch("aiofiles.os.remove", side_effect=flaky_remove):
            with pytest.raises(MirrorIOError) as exc_info:
                await mirror.clear()

        assert exc_info.value.context["failed"] == 1
        assert not mirror.path_for("a").exists()
        assert not mirror.path_for("c").exists()
        assert blocked.exists()

    def test_is_writable(self, mirror):
        assert mirror.is_writable() is True
