"""
Relay services: key issuance, session registry, hand-off and cleanup.
"""

from .keygen import KeyGenerator
from .session_store import SessionStore
from .coordinator import TransferCoordinator
from .reaper import Reaper
from .archive import stream_zip

__all__ = [
    "KeyGenerator",
    "SessionStore",
    "TransferCoordinator",
    "Reaper",
    "stream_zip",
]
