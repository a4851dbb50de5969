"""
Tests for the HTTP API.

Single-request behavior goes through TestClient; transfers that need an
uploader and a downloader at the same time use an httpx AsyncClient on
the ASGI app directly.
"""

import asyncio
import io
import re
import zipfile

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import ClientDisconnect

from nethermes.core.domain.session import TransferStatus
from nethermes.infrastructure.config.models import ApplicationConfig, ServerConfig, TransferConfig
from nethermes.presentation.api.app import create_app

from conftest import CONTENT_TYPE, build_multipart

KEY = "abcde12345"


def make_config(**transfer) -> ApplicationConfig:
    return ApplicationConfig(
        server=ServerConfig(static_directory=None),
        transfer=TransferConfig(**transfer)
    )


@pytest.fixture
def app() -> FastAPI:
    return create_app(make_config())


@pytest.fixture
def client(app: FastAPI):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app: FastAPI):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


async def wait_for_status(ac: httpx.AsyncClient, key: str) -> str:
    for _ in range(200):
        response = await ac.get(f"/status/{key}")
        if response.status_code == 200:
            return response.text
        await asyncio.sleep(0.01)
    raise AssertionError(f"session {key} never registered")


class TestLandingPage:
    """Test cases for the key-issuing landing page."""

    def test_index_issues_key(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        match = re.search(r"/upload/([a-z0-9]+)", response.text)
        assert match is not None
        assert len(match.group(1)) == 10
        assert f"http://testserver/download/{match.group(1)}" in response.text

    def test_index_keys_differ(self, client: TestClient) -> None:
        first = re.search(r'id="key">([a-z0-9]+)<', client.get("/").text).group(1)
        second = re.search(r'id="key">([a-z0-9]+)<', client.get("/").text).group(1)
        assert first != second

    def test_custom_key_shape(self) -> None:
        app = create_app(make_config(key_charset="xyz", key_length=4))
        with TestClient(app) as client:
            text = client.get("/").text

        key = re.search(r'id="key">([^<]+)<', text).group(1)
        assert len(key) == 4
        assert set(key) <= {"x", "y", "z"}


class TestErrors:
    """Test cases for client errors."""

    def test_unknown_status(self, client: TestClient) -> None:
        response = client.get(f"/status/{KEY}")

        assert response.status_code == 400
        assert response.json() == {"error": "no_such_transfer", "message": "transfer does not exist"}

    def test_unknown_download(self, client: TestClient) -> None:
        response = client.get(f"/download/{KEY}")

        assert response.status_code == 400
        assert response.json()["error"] == "no_such_transfer"

    @pytest.mark.parametrize("path", [
        "/status/short",
        "/status/ABCDE12345",
        "/download/abcde123456",
        "/download/abcde-1234",
    ])
    def test_malformed_key_is_not_found(self, client: TestClient, path: str) -> None:
        assert client.get(path).status_code == 404

    def test_malformed_upload_key_is_not_found(self, client: TestClient) -> None:
        response = client.post(
            "/upload/bad", content=build_multipart([]), headers={"content-type": CONTENT_TYPE})
        assert response.status_code == 404

    def test_upload_requires_multipart(self, client: TestClient) -> None:
        response = client.post(
            f"/upload/{KEY}", content=b"hello", headers={"content-type": "text/plain"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_multipart"

    def test_upload_times_out(self) -> None:
        """Test that an unclaimed upload is answered with a timeout error."""
        app = create_app(make_config(timeout_minutes=0.002))
        with TestClient(app) as client:
            response = client.post(
                f"/upload/{KEY}",
                content=build_multipart([("file", "a.txt", b"a")]),
                headers={"content-type": CONTENT_TYPE}
            )
            assert response.status_code == 400
            assert response.json()["error"] == "transfer_timed_out"

            assert client.get(f"/status/{KEY}").text == "timed_out"
            assert client.get(f"/download/{KEY}").status_code == 400


class TestHealth:
    """Test cases for the health endpoint."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["application"] == {"name": "Nethermes", "version": "0.1.0"}
        assert data["sessions"]["total"] == 0
        assert data["reaper"]["status"] == "running"
        assert "timestamp" in data


class TestTransfer:
    """End-to-end transfers between concurrent clients."""

    async def test_upload_then_download(self, app: FastAPI, async_client: httpx.AsyncClient) -> None:
        """Test the complete relay of a single file."""
        body = build_multipart([("file", "hello.txt", b"hi")])
        upload = asyncio.create_task(async_client.post(
            f"/upload/{KEY}", content=body, headers={"content-type": CONTENT_TYPE}))

        assert await wait_for_status(async_client, KEY) == "waiting"

        response = await async_client.get(f"/download/{KEY}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["content-disposition"] == f'attachment; filename="{KEY}.zip"'
        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert archive.namelist() == ["hello.txt"]
            assert archive.read("hello.txt") == b"hi"

        upload_response = await asyncio.wait_for(upload, timeout=5)
        assert upload_response.status_code == 200
        assert upload_response.text == "ok"

        assert (await async_client.get(f"/status/{KEY}")).text == "done"

        # Second download of a finished transfer
        assert (await async_client.get(f"/download/{KEY}")).status_code == 400

        await app.state.reaper.sweep()
        assert (await async_client.get(f"/status/{KEY}")).status_code == 400

    async def test_multiple_files(self, async_client: httpx.AsyncClient) -> None:
        body = build_multipart([
            ("file", "one.txt", b"1" * 5000),
            ("comment", None, b"not a file"),
            ("file", "two.bin", bytes(range(256))),
        ])
        upload = asyncio.create_task(async_client.post(
            f"/upload/{KEY}", content=body, headers={"content-type": CONTENT_TYPE}))
        await wait_for_status(async_client, KEY)

        response = await async_client.get(f"/download/{KEY}")

        with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
            assert archive.namelist() == ["one.txt", "two.bin"]
            assert archive.read("one.txt") == b"1" * 5000
            assert archive.read("two.bin") == bytes(range(256))

        assert (await asyncio.wait_for(upload, timeout=5)).text == "ok"

    async def test_key_in_use(self, async_client: httpx.AsyncClient) -> None:
        """Test that a second uploader cannot take a waiting key."""
        body = build_multipart([("file", "a.txt", b"a")])
        upload = asyncio.create_task(async_client.post(
            f"/upload/{KEY}", content=body, headers={"content-type": CONTENT_TYPE}))
        await wait_for_status(async_client, KEY)

        response = await async_client.post(
            f"/upload/{KEY}", content=body, headers={"content-type": CONTENT_TYPE})
        assert response.status_code == 400
        assert response.json()["error"] == "key_already_exists"

        await async_client.get(f"/download/{KEY}")
        assert (await asyncio.wait_for(upload, timeout=5)).text == "ok"


def download_scope(key: str, spec_version: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": spec_version},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": f"/download/{key}",
        "raw_path": f"/download/{key}".encode("ascii"),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


class TestDownloaderLeavesEarly:
    """Downloads whose client is gone before the first archive byte."""

    async def start_upload(self, app: FastAPI, make_reader) -> asyncio.Task:
        reader = make_reader([("file", "a.txt", b"a" * 1000)])
        upload = asyncio.create_task(app.state.coordinator.begin_upload(KEY, reader))
        while not await app.state.store.contains(KEY):
            await asyncio.sleep(0.01)
        return upload

    async def test_send_fails_on_response_start(self, app: FastAPI, make_reader) -> None:
        """Test that a connection reset before any body still finishes the session."""
        upload = await self.start_upload(app, make_reader)

        async def receive() -> dict:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: dict) -> None:
            if message["type"] == "http.response.start":
                raise OSError("connection reset")

        with pytest.raises((ClientDisconnect, OSError)):
            await app(download_scope(KEY, "2.4"), receive, send)

        await asyncio.wait_for(upload, timeout=1)
        session = await app.state.store.get(KEY)
        assert session.status is TransferStatus.DONE

    async def test_disconnect_before_response(
        self, app: FastAPI, async_client: httpx.AsyncClient, make_reader
    ) -> None:
        """Test that a disconnect noticed before streaming starts finishes the session."""
        upload = await self.start_upload(app, make_reader)

        async def receive() -> dict:
            return {"type": "http.disconnect"}

        async def send(message: dict) -> None:
            pass

        await app(download_scope(KEY, "2.0"), receive, send)

        await asyncio.wait_for(upload, timeout=1)
        session = await app.state.store.get(KEY)
        assert session.status is TransferStatus.DONE

        # The key cannot be downloaded a second time
        response = await async_client.get(f"/download/{KEY}")
        assert response.status_code == 400
