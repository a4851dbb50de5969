"""
Incremental multipart/form-data reader.

Wraps the ``python-multipart`` push parser in a pull interface: parts are
produced one at a time and their bodies are yielded chunk by chunk as the
underlying request stream is read, so nothing is buffered beyond the
current network chunk.
"""

import logging
import posixpath
from collections import deque
from typing import Any, AsyncIterator, Deque, Dict, Optional, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import ClientDisconnect, Request

from ...core.domain.errors import MultipartError

logger = logging.getLogger(__name__)

_PART_BEGIN = "part_begin"
_HEADER = "header"
_HEADERS_FINISHED = "headers_finished"
_DATA = "data"
_PART_END = "part_end"
_END = "end"


class MultipartPart:
    """A single part of a multipart body."""

    def __init__(self, reader: 'MultipartReader', headers: Dict[str, str]) -> None:
        self._reader = reader
        self.headers = headers
        self.exhausted = False

        _, params = parse_options_header(headers.get("content-disposition", ""))
        self.name: str = params.get(b"name", b"").decode("utf-8", "replace")

        filename = params.get(b"filename")
        self.filename: Optional[str] = None
        if filename is not None:
            # Browsers may send a full client path
            base = posixpath.basename(filename.decode("utf-8", "replace").replace("\\", "/"))
            self.filename = base or None

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the part body as it arrives."""
        while not self.exhausted:
            kind, payload = await self._reader._next_event()
            if kind == _DATA:
                yield payload
            elif kind == _PART_END:
                self.exhausted = True
            else:
                raise MultipartError(message=f"unexpected multipart event '{kind}' inside part")

    async def read(self) -> bytes:
        """Read the remaining part body into memory."""
        return b"".join([chunk async for chunk in self.iter_chunks()])

    def __repr__(self) -> str:
        return f"MultipartPart(name={self.name!r}, filename={self.filename!r})"


class MultipartReader:
    """
    Pull-style reader over an async byte stream.

    Only one consumer may read from a reader at a time.
    """

    def __init__(self, stream: AsyncIterator[bytes], boundary: bytes) -> None:
        self._stream = stream.__aiter__()
        self._events: Deque[Tuple[str, Any]] = deque()
        self._current: Optional[MultipartPart] = None
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._stream_done = False
        self._finished = False
        self._parser = MultipartParser(boundary, callbacks={
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
            "on_end": self._on_end,
        })

    @classmethod
    def from_content_type(cls, content_type: str, stream: AsyncIterator[bytes]) -> 'MultipartReader':
        """
        Create a reader for a body with the given Content-Type header.

        Raises:
            MultipartError: If the content type is not multipart/form-data
                or has no boundary
        """
        media_type, params = parse_options_header(content_type or "")
        if media_type != b"multipart/form-data":
            raise MultipartError(message="request is not multipart/form-data")

        boundary = params.get(b"boundary")
        if not boundary:
            raise MultipartError(message="multipart boundary missing")

        return cls(stream, boundary)

    @classmethod
    def from_request(cls, request: Request) -> 'MultipartReader':
        """Create a reader over the body of an incoming request."""
        return cls.from_content_type(
            request.headers.get("content-type", ""),
            _guard_disconnect(request.stream())
        )

    @property
    def finished(self) -> bool:
        """True once the closing boundary has been read."""
        return self._finished

    async def next_part(self) -> Optional[MultipartPart]:
        """
        Advance to the next part, draining the unread rest of the current one.

        Returns:
            The next part, or None after the closing boundary
        """
        if self._current is not None and not self._current.exhausted:
            async for _ in self._current.iter_chunks():
                pass
        self._current = None

        if self._finished:
            return None

        headers: Dict[str, str] = {}
        while True:
            kind, payload = await self._next_event()
            if kind == _PART_BEGIN:
                headers = {}
            elif kind == _HEADER:
                name, value = payload
                headers[name] = value
            elif kind == _HEADERS_FINISHED:
                self._current = MultipartPart(self, headers)
                return self._current
            elif kind == _END:
                self._finished = True
                return None
            else:
                raise MultipartError(message=f"unexpected multipart event '{kind}'")

    async def _next_event(self) -> Tuple[str, Any]:
        while not self._events:
            if self._stream_done:
                raise MultipartError(message="multipart body ended before closing boundary")

            try:
                chunk = await self._stream.__anext__()
            except StopAsyncIteration:
                self._stream_done = True
                self._parser.finalize()
                continue

            if not chunk:
                continue

            try:
                self._parser.write(chunk)
            except MultipartParseError as e:
                raise MultipartError(message=f"malformed multipart body: {e}") from e

        return self._events.popleft()

    # Parser callbacks

    def _on_part_begin(self) -> None:
        self._events.append((_PART_BEGIN, None))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._events.append((_DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append((_PART_END, None))

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        name = self._header_field.decode("latin-1").strip().lower()
        value = self._header_value.decode("latin-1").strip()
        self._events.append((_HEADER, (name, value)))
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        self._events.append((_HEADERS_FINISHED, None))

    def _on_end(self) -> None:
        self._events.append((_END, None))


async def _guard_disconnect(stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Turn an uploader disconnect into a multipart error."""
    try:
        async for chunk in stream:
            yield chunk
    except ClientDisconnect as e:
        logger.warning("Uploader disconnected while its body was being read")
        raise MultipartError(message="upload connection closed") from e
