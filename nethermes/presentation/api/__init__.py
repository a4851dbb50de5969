"""
REST API components for the presentation layer.
"""

from .app import create_app
from .dependencies import get_config, get_store, get_coordinator, get_key_generator

__all__ = [
    "create_app",
    "get_config",
    "get_store",
    "get_coordinator",
    "get_key_generator",
]
