"""
Infrastructure layer containing external dependencies and I/O operations.

This layer handles configuration, logging and request body parsing.
"""

from .config.loader import ConfigLoader
from .config.models import ApplicationConfig
from .logging.setup import setup_logging
from .multipart.reader import MultipartReader

__all__ = [
    "ConfigLoader",
    "ApplicationConfig",
    "setup_logging",
    "MultipartReader",
]
