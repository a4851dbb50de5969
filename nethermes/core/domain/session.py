"""
Session domain model for the relay.

A session links one uploader and one future downloader through a key.
Its status only moves along the transitions listed in ``_TRANSITIONS``.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet


class TransferStatus(Enum):
    """Transfer status enumeration."""
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    TIMED_OUT = "timed_out"
    DONE = "done"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self in (TransferStatus.TIMED_OUT, TransferStatus.DONE)

    def can_transition_to(self, new_status: 'TransferStatus') -> bool:
        """Check if moving from this status to ``new_status`` is allowed."""
        return new_status in _TRANSITIONS[self]


_TRANSITIONS: Dict[TransferStatus, FrozenSet[TransferStatus]] = {
    TransferStatus.WAITING: frozenset({TransferStatus.IN_PROGRESS, TransferStatus.TIMED_OUT}),
    TransferStatus.IN_PROGRESS: frozenset({TransferStatus.DONE}),
    TransferStatus.TIMED_OUT: frozenset(),
    TransferStatus.DONE: frozenset(),
}


def is_terminal(status: TransferStatus) -> bool:
    """Sweep predicate selecting finished sessions."""
    return status.is_terminal


@dataclass(eq=False)
class Session:
    """
    Coordination state for one key.

    The status is only written by the session store; the events are set by
    the transfer coordinator after it wins the matching status transition.
    """

    key: str
    """Rendezvous key, immutable after creation."""

    source: Any
    """Incoming multipart stream, read by the claiming downloader only."""

    status: TransferStatus = TransferStatus.WAITING

    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    claimed: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Set when a downloader claims the session."""

    finished: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Set when the session reaches a terminal status."""

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Session key cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert session metadata to a dictionary."""
        return {
            "key": self.key,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
