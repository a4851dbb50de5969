"""
In-memory session registry.

All operations take the same asyncio lock, so check-and-insert and
compare-and-set are atomic with respect to every concurrent request
and to the reaper.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from ..domain.errors import KeyAlreadyExists
from ..domain.session import Session, TransferStatus
from ..interfaces.relay import ISessionStore

logger = logging.getLogger(__name__)


class SessionStore(ISessionStore):
    """Session registry keyed by rendezvous key."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def create(self, session: Session) -> None:
        """Register a session, failing if its key is taken."""
        async with self._lock:
            if session.key in self._sessions:
                raise KeyAlreadyExists(session.key)
            self._sessions[session.key] = session

        logger.debug(f"Registered session: {session.key}")

    async def get(self, key: str) -> Optional[Session]:
        async with self._lock:
            return self._sessions.get(key)

    async def contains(self, key: str) -> bool:
        async with self._lock:
            return key in self._sessions

    async def update_status(
        self,
        key: str,
        expected: TransferStatus,
        new_status: TransferStatus
    ) -> bool:
        """Move a session from ``expected`` to ``new_status`` if it is still there."""
        if not expected.can_transition_to(new_status):
            logger.warning(
                f"Rejected transition {expected.value} -> {new_status.value} for {key}")
            return False

        async with self._lock:
            session = self._sessions.get(key)
            if session is None or session.status is not expected:
                return False

            session.status = new_status
            session.updated_at = time.time()

        logger.debug(f"Session {key}: {expected.value} -> {new_status.value}")
        return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._sessions.pop(key, None) is not None

    async def sweep(self, predicate: Callable[[TransferStatus], bool]) -> List[str]:
        """Remove all sessions whose status satisfies ``predicate``."""
        async with self._lock:
            removed = [
                key for key, session in self._sessions.items()
                if predicate(session.status)
            ]
            for key in removed:
                del self._sessions[key]

        return removed

    async def stats(self) -> Dict[str, int]:
        async with self._lock:
            counts = {status.value: 0 for status in TransferStatus}
            for session in self._sessions.values():
                counts[session.status.value] += 1
            counts["total"] = len(self._sessions)

        return counts
