"""
Transfer coordinator implementation.

This module hands a waiting upload over to the first downloader that
claims its key. Every move out of WAITING goes through the store's
compare-and-set, so a timeout and a claim racing on the same key resolve
to exactly one winner.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict

from ..domain.errors import MultipartError, NoSuchTransfer, TransferTimedOut
from ..domain.session import Session, TransferStatus
from ..interfaces.relay import ISessionStore, ITransferCoordinator
from .archive import DEFAULT_FILE_FIELD, stream_zip

logger = logging.getLogger(__name__)


class TransferCoordinator(ITransferCoordinator):
    """
    Blocking hand-off between uploaders and downloaders.

    The uploading request is suspended on the session's ``claimed`` event
    with a timeout, then on its ``finished`` event while the downloader
    streams the archive.
    """

    def __init__(
        self,
        store: ISessionStore,
        timeout: float = 180.0,
        file_field: str = DEFAULT_FILE_FIELD
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            store: Session registry shared with the reaper
            timeout: Seconds an upload waits for a downloader
            file_field: Form field name identifying file parts
        """
        if timeout <= 0:
            raise ValueError(f"Upload timeout must be positive, got {timeout}")

        self._store = store
        self._timeout = timeout
        self._file_field = file_field

    @property
    def timeout(self) -> float:
        return self._timeout

    async def begin_upload(self, key: str, source: Any) -> None:
        """Register a waiting session and block until it is resolved."""
        session = Session(key=key, source=source)
        await self._store.create(session)
        logger.info(f"Upload waiting for receiver: {key}")

        try:
            await asyncio.wait_for(session.claimed.wait(), timeout=self._timeout)
        except asyncio.TimeoutError:
            if await self._store.update_status(key, TransferStatus.WAITING, TransferStatus.TIMED_OUT):
                session.finished.set()
                logger.info(f"Upload timed out without receiver: {key}")
                raise TransferTimedOut(key)
            # A downloader claimed the session while the timer fired
        except asyncio.CancelledError:
            await asyncio.shield(self._abandon_upload(session))
            raise

        await session.finished.wait()
        logger.info(f"Upload delivered: {key}")

    async def claim_download(self, key: str) -> Session:
        """Claim a waiting session; exactly one caller wins."""
        session = await self._store.get(key)
        if session is None:
            raise NoSuchTransfer(key)

        if not await self._store.update_status(key, TransferStatus.WAITING, TransferStatus.IN_PROGRESS):
            raise NoSuchTransfer(key)

        session.claimed.set()
        logger.info(f"Download claimed: {key}")
        return session

    async def stream_archive(self, session: Session) -> AsyncIterator[bytes]:
        """
        Stream a claimed session as a ZIP archive.

        Once iteration has started the session ends up DONE, whether the
        archive completes, the upload body turns out to be broken, or the
        downloader goes away. A stream that is never iterated completes
        nothing; its owner must call ``complete_download``.
        """
        try:
            async for chunk in stream_zip(session.source, self._file_field):
                yield chunk
        except (MultipartError, OSError) as e:
            logger.warning(f"Archive for {session.key} aborted: {e}")
        finally:
            # Shielded so a cancelled response still releases the uploader
            await asyncio.shield(self.complete_download(session.key))

    async def complete_download(self, key: str) -> None:
        """Mark a claimed session as done and release its uploader."""
        session = await self._store.get(key)
        if await self._store.update_status(key, TransferStatus.IN_PROGRESS, TransferStatus.DONE):
            logger.info(f"Download finished: {key}")
        if session is not None and session.status.is_terminal:
            session.finished.set()

    async def _abandon_upload(self, session: Session) -> None:
        """Time out a session whose uploader went away before any claim."""
        if await self._store.update_status(session.key, TransferStatus.WAITING, TransferStatus.TIMED_OUT):
            session.finished.set()
            logger.info(f"Upload cancelled while waiting: {session.key}")

    async def check_health(self) -> Dict[str, Any]:
        """Report session counts."""
        stats = await self._store.stats()
        return {
            "healthy": True,
            "status": "running",
            "details": {
                "timeout_seconds": self._timeout,
                "file_field": self._file_field,
                "sessions": stats,
            }
        }
