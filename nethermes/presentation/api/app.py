"""
FastAPI application factory and configuration.

This module wires the relay services into a FastAPI application with
middleware, error handlers and routes.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from string import Template
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ...core.domain.errors import RelayError
from ...core.services.coordinator import TransferCoordinator
from ...core.services.keygen import KeyGenerator
from ...core.services.reaper import Reaper
from ...core.services.session_store import SessionStore
from ...infrastructure.config.models import ApplicationConfig
from .middleware import AccessLogMiddleware
from .routers import health, transfer

logger = logging.getLogger(__name__)

DEFAULT_INDEX_TEMPLATE = Path(__file__).resolve().parent.parent / "templates" / "index.html"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Runs the reaper for as long as the application serves requests.
    """
    reaper: Reaper = app.state.reaper
    await reaper.start()
    logger.info("Application started")

    try:
        yield
    finally:
        await reaper.stop()
        logger.info("Application shut down")


def load_index_template(path: Optional[str] = None) -> Template:
    """
    Load the landing page template.

    Raises:
        OSError: If the template cannot be read
    """
    template_path = Path(path) if path else DEFAULT_INDEX_TEMPLATE
    return Template(template_path.read_text(encoding="utf-8"))


def create_app(config: ApplicationConfig, store: Optional[SessionStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration
        store: Session registry (a fresh one is created when omitted)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=config.name,
        version=config.version,
        description="Rendezvous file relay streaming uploads straight to downloaders",
        debug=config.debug,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None
    )

    store = store or SessionStore()
    transfer_config = config.transfer

    app.state.config = config
    app.state.store = store
    app.state.key_generator = KeyGenerator(
        charset=transfer_config.key_charset,
        length=transfer_config.key_length,
        attempts=transfer_config.key_attempts
    )
    app.state.coordinator = TransferCoordinator(
        store,
        timeout=transfer_config.timeout_seconds,
        file_field=transfer_config.file_field
    )
    app.state.reaper = Reaper(store, interval=transfer_config.check_seconds)
    app.state.index_template = load_index_template(config.server.index_template)

    app.add_middleware(AccessLogMiddleware)
    _register_exception_handlers(app)
    _register_routes(app, config)

    logger.info(f"FastAPI application created: {config.name} v{config.version}")
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Turn relay errors into client-visible 400 responses."""

    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=400,
            content={"error": exc.code, "message": exc.message}
        )

    app.add_exception_handler(RelayError, relay_error_handler)  # type: ignore[arg-type]


def _register_routes(app: FastAPI, config: ApplicationConfig) -> None:
    """Register API routes and the optional static directory."""
    app.include_router(
        health.router,
        prefix="/health",
        tags=["health"]
    )

    app.include_router(
        transfer.router,
        tags=["transfer"]
    )

    static_directory = config.server.static_directory
    if static_directory and Path(static_directory).is_dir():
        app.mount("/", StaticFiles(directory=static_directory, html=True), name="static")
        logger.info(f"Serving static files from {static_directory}")

    logger.debug("Routes registered")
