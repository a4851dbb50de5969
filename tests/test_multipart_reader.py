"""
Tests for the streaming multipart reader.
"""

import pytest

from nethermes.core.domain.errors import MultipartError
from nethermes.infrastructure.multipart.reader import MultipartReader

from conftest import BOUNDARY, CONTENT_TYPE, build_multipart, chunked


class TestMultipartReader:
    """Test cases for MultipartReader."""

    async def test_reads_parts_in_order(self, make_reader) -> None:
        """Test names, filenames and bodies of consecutive parts."""
        reader = make_reader([
            ("note", None, b"hello there"),
            ("file", "a.txt", b"alpha"),
            ("file", "b.bin", bytes(range(256)) * 4),
        ])

        note = await reader.next_part()
        assert note.name == "note"
        assert note.filename is None
        assert await note.read() == b"hello there"

        first = await reader.next_part()
        assert first.name == "file"
        assert first.filename == "a.txt"
        assert first.content_type == "application/octet-stream"
        assert await first.read() == b"alpha"

        second = await reader.next_part()
        assert second.filename == "b.bin"
        assert await second.read() == bytes(range(256)) * 4

        assert await reader.next_part() is None
        assert reader.finished
        assert await reader.next_part() is None

    async def test_unread_part_is_drained(self, make_reader) -> None:
        """Test that moving on skips the rest of an unread part."""
        reader = make_reader([
            ("skip", None, b"x" * 1000),
            ("file", "keep.txt", b"kept"),
        ])

        skipped = await reader.next_part()
        assert skipped.name == "skip"

        kept = await reader.next_part()
        assert kept.filename == "keep.txt"
        assert await kept.read() == b"kept"
        assert skipped.exhausted

    async def test_chunks_are_streamed(self, make_reader) -> None:
        """Test that a part body arrives in several pieces."""
        content = b"0123456789" * 100
        reader = make_reader([("file", "big.txt", content)], chunk_size=64)

        part = await reader.next_part()
        chunks = [chunk async for chunk in part.iter_chunks()]

        assert len(chunks) > 1
        assert b"".join(chunks) == content

    async def test_empty_file_part(self, make_reader) -> None:
        reader = make_reader([("file", "empty.txt", b"")])

        part = await reader.next_part()
        assert part.filename == "empty.txt"
        assert await part.read() == b""
        assert await reader.next_part() is None

    @pytest.mark.parametrize("filename,expected", [
        ("dir/sub/report.pdf", "report.pdf"),
        ("C:\\Users\\me\\report.pdf", "report.pdf"),
        ("", None),
    ])
    async def test_filename_is_base_name(self, make_reader, filename: str, expected) -> None:
        reader = make_reader([("file", filename, b"data")])

        part = await reader.next_part()
        assert part.filename == expected

    async def test_truncated_body(self, make_reader) -> None:
        """Test that a body cut before the closing boundary is an error."""
        reader = make_reader([("file", "a.txt", b"a" * 100)], truncate=180)

        part = await reader.next_part()
        with pytest.raises(MultipartError):
            await part.read()

    async def test_malformed_body(self) -> None:
        reader = MultipartReader.from_content_type(
            CONTENT_TYPE, chunked(b"this is not a multipart body", 8))

        with pytest.raises(MultipartError):
            await reader.next_part()

    async def test_empty_chunks_are_ignored(self) -> None:
        body = build_multipart([("file", "a.txt", b"abc")])

        async def stream():
            yield b""
            yield body
            yield b""

        reader = MultipartReader.from_content_type(CONTENT_TYPE, stream())
        part = await reader.next_part()
        assert await part.read() == b"abc"
        assert await reader.next_part() is None

    @pytest.mark.parametrize("content_type", [
        "application/json",
        "text/plain; boundary=abc",
        "multipart/form-data",
        "",
    ])
    def test_rejects_non_multipart_content_type(self, content_type: str) -> None:
        with pytest.raises(MultipartError):
            MultipartReader.from_content_type(content_type, chunked(b"", 1))

    def test_accepts_quoted_boundary(self) -> None:
        reader = MultipartReader.from_content_type(
            f'multipart/form-data; boundary="{BOUNDARY}"', chunked(b"", 1))
        assert not reader.finished
