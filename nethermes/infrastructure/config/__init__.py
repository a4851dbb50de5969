"""
Configuration management infrastructure.

This module provides configuration models and loading for the relay.
"""

from .models import ApplicationConfig, ServerConfig, TransferConfig, LoggingConfig
from .loader import ConfigLoader, DEFAULT_CONFIG_FILE

__all__ = [
    "ApplicationConfig",
    "ServerConfig",
    "TransferConfig",
    "LoggingConfig",
    "ConfigLoader",
    "DEFAULT_CONFIG_FILE",
]
