"""
Core module containing the relay's session logic, domain models and interfaces.

This module is independent of the HTTP framework and of configuration and
logging infrastructure.
"""

from .interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .interfaces.relay import ISessionStore, ITransferCoordinator
from .domain.session import Session, TransferStatus
from .domain.errors import (
    RelayError, KeyAlreadyExists, ExhaustedKeySpace, NoSuchTransfer, TransferTimedOut,
    MultipartError
)

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "ISessionStore",
    "ITransferCoordinator",
    "Session",
    "TransferStatus",
    "RelayError",
    "KeyAlreadyExists",
    "ExhaustedKeySpace",
    "NoSuchTransfer",
    "TransferTimedOut",
    "MultipartError",
]
