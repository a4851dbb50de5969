"""
HTTP middleware components for request/response processing.

Written as plain ASGI middleware: upload bodies are read from another
request's task, so the receive channel must reach the app unwrapped.
"""

import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("nethermes.access")


class AccessLogMiddleware:
    """Log one line per request with client, method, path and outcome."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        remote = f"{client[0]}:{client[1]}" if client else "-"
        method = scope.get("method", "-")
        path = scope.get("path", "")
        if scope.get("query_string"):
            path = f"{path}?{scope['query_string'].decode('latin-1')}"

        logger.info(f"{remote} {method} {path}")

        start_time = time.time()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.time() - start_time
            logger.debug(f"{remote} {method} {path} -> {status_code} in {duration:.3f}s")
