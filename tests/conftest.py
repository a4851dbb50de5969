"""
Shared fixtures for building multipart bodies and readers.
"""

from typing import AsyncIterator, Callable, List, Optional, Tuple

import pytest

from nethermes.infrastructure.multipart.reader import MultipartReader

BOUNDARY = "nethermes-test-boundary"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"

Part = Tuple[str, Optional[str], bytes]


def build_multipart(parts: List[Part], boundary: str = BOUNDARY) -> bytes:
    """Encode (field name, filename or None, content) triples as form data."""
    body = b""
    for name, filename, content in parts:
        disposition = f'form-data; name="{name}"'
        head = f"--{boundary}\r\n"
        if filename is not None:
            disposition += f'; filename="{filename}"'
            head += f"Content-Disposition: {disposition}\r\nContent-Type: application/octet-stream\r\n"
        else:
            head += f"Content-Disposition: {disposition}\r\n"
        body += head.encode("utf-8") + b"\r\n" + content + b"\r\n"
    body += f"--{boundary}--\r\n".encode("utf-8")
    return body


async def chunked(data: bytes, size: int) -> AsyncIterator[bytes]:
    for offset in range(0, len(data), size):
        yield data[offset:offset + size]


@pytest.fixture
def make_reader() -> Callable[..., MultipartReader]:
    """Factory creating a reader over a body split into small chunks."""

    def factory(parts: List[Part], chunk_size: int = 7, truncate: Optional[int] = None) -> MultipartReader:
        body = build_multipart(parts)
        if truncate is not None:
            body = body[:truncate]
        return MultipartReader.from_content_type(CONTENT_TYPE, chunked(body, chunk_size))

    return factory
