"""
Domain models shared by the relay services.
"""

from .session import Session, TransferStatus, is_terminal
from .errors import (
    RelayError, KeyAlreadyExists, ExhaustedKeySpace, NoSuchTransfer, TransferTimedOut,
    MultipartError
)

__all__ = [
    "Session",
    "TransferStatus",
    "is_terminal",
    "RelayError",
    "KeyAlreadyExists",
    "ExhaustedKeySpace",
    "NoSuchTransfer",
    "TransferTimedOut",
    "MultipartError",
]
