"""
Response classes for relay endpoints.
"""

import asyncio
import logging

from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from ...core.domain.session import Session
from ...core.services.coordinator import TransferCoordinator

logger = logging.getLogger(__name__)


class ArchiveResponse(StreamingResponse):
    """
    Streamed ZIP download of a claimed session.

    The response owns completion of the session: it is marked done however
    the response ends, including when the downloader is gone before the
    first byte and the archive stream is never started.
    """

    media_type = "application/zip"

    def __init__(self, coordinator: TransferCoordinator, session: Session) -> None:
        self._coordinator = coordinator
        self._key = session.key
        super().__init__(
            coordinator.stream_archive(session),
            headers={"Content-Disposition": f'attachment; filename="{session.key}.zip"'}
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except Exception as e:
            logger.warning(f"Download of {self._key} ended early: {e!r}")
            raise
        finally:
            await asyncio.shield(self._coordinator.complete_download(self._key))
