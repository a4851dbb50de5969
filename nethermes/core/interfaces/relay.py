"""
Relay service interfaces.

This module defines the contracts between the session registry, the
transfer coordinator and the HTTP layer.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from ..domain.session import Session, TransferStatus
from .lifecycle import IHealthCheckable


class ISessionStore(ABC):
    """
    Interface for the session registry.

    Every operation is atomic with respect to every other one; callers never
    read a status and write it back without going through ``update_status``.
    """

    @abstractmethod
    async def create(self, session: Session) -> None:
        """
        Register a session under its key.

        Raises:
            KeyAlreadyExists: If a session is already registered for the key
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Session]:
        """Look up a session by key."""
        pass

    @abstractmethod
    async def contains(self, key: str) -> bool:
        """Check whether a session is registered for the key."""
        pass

    @abstractmethod
    async def update_status(
        self,
        key: str,
        expected: TransferStatus,
        new_status: TransferStatus
    ) -> bool:
        """
        Compare-and-set the status of a session.

        Returns:
            True if the session was in ``expected`` and moved to ``new_status``
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a session. Returns False if the key was not registered."""
        pass

    @abstractmethod
    async def sweep(self, predicate: Callable[[TransferStatus], bool]) -> List[str]:
        """Remove every session whose status matches the predicate."""
        pass

    @abstractmethod
    async def stats(self) -> Dict[str, int]:
        """Get the number of sessions per status."""
        pass


class ITransferCoordinator(IHealthCheckable):
    """Interface for the uploader/downloader hand-off."""

    @abstractmethod
    async def begin_upload(self, key: str, source: Any) -> None:
        """
        Register a waiting session and block until it is resolved.

        Raises:
            KeyAlreadyExists: If the key is in use
            TransferTimedOut: If no downloader claimed the session in time
        """
        pass

    @abstractmethod
    async def claim_download(self, key: str) -> Session:
        """
        Claim a waiting session for download.

        Raises:
            NoSuchTransfer: If the key is unknown or not waiting
        """
        pass

    @abstractmethod
    def stream_archive(self, session: Session) -> AsyncIterator[bytes]:
        """Stream the claimed session's files as a ZIP archive."""
        pass

    @abstractmethod
    async def complete_download(self, key: str) -> None:
        """Mark a claimed session as done and release its uploader."""
        pass
