"""
Transfer API endpoints.

This module provides the landing page issuing keys and the status,
upload and download endpoints of the relay.
"""

import html
import logging
from string import Template

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from ....core.domain.errors import NoSuchTransfer
from ....core.services.coordinator import TransferCoordinator
from ....core.services.keygen import KeyGenerator
from ....core.services.session_store import SessionStore
from ....infrastructure.multipart.reader import MultipartReader
from ..dependencies import get_coordinator, get_key_generator, get_store, valid_key
from ..responses import ArchiveResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    key_generator: KeyGenerator = Depends(get_key_generator),
    store: SessionStore = Depends(get_store)
) -> HTMLResponse:
    """Issue a fresh key and render upload/download instructions."""
    key = await key_generator.new_unique_key(store)

    template: Template = request.app.state.index_template
    host = request.headers.get("host") or request.url.netloc
    page = template.safe_substitute(key=html.escape(key), host=html.escape(host))
    return HTMLResponse(page)


@router.get("/status/{key}", response_class=PlainTextResponse)
async def transfer_status(
    key: str = Depends(valid_key),
    store: SessionStore = Depends(get_store)
) -> PlainTextResponse:
    """Return the session status token."""
    session = await store.get(key)
    if session is None:
        raise NoSuchTransfer(key)

    return PlainTextResponse(session.status.value)


@router.post("/upload/{key}", response_class=PlainTextResponse)
async def upload(
    request: Request,
    key: str = Depends(valid_key),
    coordinator: TransferCoordinator = Depends(get_coordinator)
) -> PlainTextResponse:
    """
    Offer a multipart body under ``key``.

    The request stays open until a downloader has received the files or the
    wait times out.
    """
    source = MultipartReader.from_request(request)
    await coordinator.begin_upload(key, source)
    return PlainTextResponse("ok")


@router.get("/download/{key}")
async def download(
    key: str = Depends(valid_key),
    coordinator: TransferCoordinator = Depends(get_coordinator)
) -> ArchiveResponse:
    """Stream the files waiting under ``key`` as a ZIP archive."""
    session = await coordinator.claim_download(key)

    try:
        return ArchiveResponse(coordinator, session)
    except BaseException:
        await coordinator.complete_download(key)
        raise
