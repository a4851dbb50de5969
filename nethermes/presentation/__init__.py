"""
Presentation layer containing the HTTP interface of the relay.
"""

from .api.app import create_app

__all__ = [
    "create_app",
]
