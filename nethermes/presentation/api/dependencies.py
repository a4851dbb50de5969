"""
FastAPI dependency injection utilities.

This module provides dependency functions giving routes access to the
relay services stored on the application state.
"""

from fastapi import Depends, HTTPException, Request, status

from ...core.services.coordinator import TransferCoordinator
from ...core.services.keygen import KeyGenerator
from ...core.services.reaper import Reaper
from ...core.services.session_store import SessionStore
from ...infrastructure.config.models import ApplicationConfig


def _state_attribute(request: Request, name: str, label: str):
    if not hasattr(request.app.state, name):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} not available"
        )
    return getattr(request.app.state, name)


def get_config(request: Request) -> ApplicationConfig:
    """
    Get the application configuration from the request.

    Raises:
        HTTPException: If configuration is not available
    """
    return _state_attribute(request, "config", "Application configuration")


def get_store(request: Request) -> SessionStore:
    return _state_attribute(request, "store", "Session store")


def get_key_generator(request: Request) -> KeyGenerator:
    return _state_attribute(request, "key_generator", "Key generator")


def get_coordinator(request: Request) -> TransferCoordinator:
    return _state_attribute(request, "coordinator", "Transfer coordinator")


def get_reaper(request: Request) -> Reaper:
    return _state_attribute(request, "reaper", "Reaper")


def valid_key(key: str, key_generator: KeyGenerator = Depends(get_key_generator)) -> str:
    """
    Path dependency accepting only keys of the configured shape.

    Raises:
        HTTPException: 404, as if the route did not match
    """
    if not key_generator.is_valid_key(key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return key
