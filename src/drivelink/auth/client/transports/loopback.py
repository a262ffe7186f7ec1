"""Loopback HTTP server that receives the provider's redirect.

Plays the role of the redirect page in popup sign-in: it is served at the
redirect URI and forwards the full callback URL to the waiting sign-in over
a MessageChannel bound to the same origin.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Self
from urllib.parse import urlparse

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse
from starlette.routing import Route

from drivelink.auth.client.transports.base import MessageChannel

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
  <body>
    <h1>Sign-in complete</h1>
    <p>You can close this window and return to the application.</p>
    <script>setTimeout(function () { window.close(); }, 2000);</script>
  </body>
</html>
"""


class LoopbackCallbackServer:
    """Serves the redirect URI on a loopback host for the duration of sign-in.

    Only the redirect path is routed; every other path is a 404. The
    callback URL is forwarded as-is: error, state and code checks belong to
    ``DriveAuthClient.handle_auth_callback``.
    """

    def __init__(self, channel: MessageChannel, redirect_uri: str) -> None:
        parsed = urlparse(redirect_uri)
        self.redirect_uri = redirect_uri
        self.host = parsed.hostname or "localhost"
        self.port = parsed.port or (443 if parsed.scheme == "https" else 80)
        self.callback_path = parsed.path or "/"

        self._channel = channel
        self.app = Starlette(
            routes=[Route(self.callback_path, self._handle_callback, methods=["GET"])]
        )
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task[None] | None = None

    async def _handle_callback(self, request: Request) -> HTMLResponse:
        # Rebuild against the configured redirect URI so the origin and path
        # are ours regardless of the Host header the browser sent.
        callback_url = f"{self.redirect_uri.split('?', 1)[0]}?{request.url.query}"
        logger.info("Received authorization callback")
        self._channel.post_auth_success(callback_url)
        return HTMLResponse(SUCCESS_PAGE)

    async def start(self) -> None:
        """Start serving in a background task."""
        config = uvicorn.Config(
            app=self.app, host=self.host, port=self.port, log_level="warning"
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._server.serve())
        logger.info(
            f"Callback server listening on {self.host}:{self.port}{self.callback_path}"
        )

    async def stop(self) -> None:
        """Stop the server and wait for it to shut down."""
        if self._server is None:
            return
        self._server.should_exit = True
        if self._server_task is not None:
            await self._server_task
        self._server = None
        self._server_task = None

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()
