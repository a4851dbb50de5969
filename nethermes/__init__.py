"""
Nethermes - rendezvous file relay.

An uploader posts a multipart file set under a short random key and the
request is held open until a downloader asks for the same key; the files
are then streamed to the downloader as a single ZIP archive without
touching the disk.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain.session import Session, TransferStatus
from .core.domain.errors import (
    RelayError, KeyAlreadyExists, ExhaustedKeySpace, NoSuchTransfer, TransferTimedOut,
    MultipartError
)
from .core.services import KeyGenerator, SessionStore, TransferCoordinator, Reaper

__all__ = [
    "Session",
    "TransferStatus",
    "RelayError",
    "KeyAlreadyExists",
    "ExhaustedKeySpace",
    "NoSuchTransfer",
    "TransferTimedOut",
    "MultipartError",
    "KeyGenerator",
    "SessionStore",
    "TransferCoordinator",
    "Reaper",
]
