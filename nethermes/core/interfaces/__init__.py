"""
Core interfaces defining the contracts for the relay components.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .relay import ISessionStore, ITransferCoordinator

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "ISessionStore",
    "ITransferCoordinator",
]
