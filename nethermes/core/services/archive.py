"""
Streaming ZIP packaging of multipart uploads.

The archive is written into an unseekable in-memory sink that is drained
after every chunk, so entries use data descriptors and the whole archive
is never held in memory or written to disk.
"""

import io
import logging
import time
import zipfile
from typing import Any, AsyncIterator, List

logger = logging.getLogger(__name__)

DEFAULT_FILE_FIELD = "file"


class _ChunkSink(io.RawIOBase):
    """Write-only, unseekable target that hands written bytes back out."""

    def __init__(self) -> None:
        self._chunks: List[bytes] = []

    def writable(self) -> bool:
        return True

    def write(self, data: Any) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def _entry_info(filename: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename, date_time=time.localtime(time.time())[:6])
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


async def stream_zip(source: Any, file_field: str = DEFAULT_FILE_FIELD) -> AsyncIterator[bytes]:
    """
    Repackage the file parts of a multipart source as a ZIP stream.

    Parts named ``file_field`` that carry a filename become one entry each,
    in upload order. Every other part is skipped. Errors raised by the source
    propagate to the caller after the entry being written is closed.

    Args:
        source: Reader exposing ``next_part()`` (see ``MultipartReader``)
        file_field: Form field name identifying file parts

    Yields:
        Consecutive pieces of the archive
    """
    sink = _ChunkSink()
    entries = 0

    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        while True:
            part = await source.next_part()
            if part is None:
                break

            if part.name != file_field or not part.filename:
                logger.debug(f"Skipping non-file part: {part.name!r}")
                continue

            with archive.open(_entry_info(part.filename), mode="w", force_zip64=True) as entry:
                async for chunk in part.iter_chunks():
                    entry.write(chunk)
                    data = sink.drain()
                    if data:
                        yield data

            entries += 1
            data = sink.drain()
            if data:
                yield data

    # Central directory
    yield sink.drain()
    logger.debug(f"Archive finished with {entries} entries")
