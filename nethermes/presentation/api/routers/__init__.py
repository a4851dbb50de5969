"""
API router modules for different endpoints.
"""

from . import health, transfer

__all__ = [
    "health",
    "transfer",
]
