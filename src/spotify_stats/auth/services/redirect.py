"""One-shot local listener that captures Spotify's authorization redirect.

The listener is a scoped resource: entering the context binds the redirect
URI's host/port, the first request on the redirect path settles the outcome,
and leaving the context releases the port on every exit path.
"""

from __future__ import annotations

import asyncio
import html
import logging
import socket
from collections.abc import Mapping
from urllib.parse import urlparse

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.routing import Route

from spotify_stats.auth.models.errors import (
    AuthorizationTimeoutError,
    CallbackListenerError,
    MalformedRedirectError,
)
from spotify_stats.auth.models.flow import (
    AuthorizationFailure,
    AuthorizationResult,
    AuthorizationSuccess,
)

logger = logging.getLogger(__name__)

SUCCESS_PAGE = (
    "<html><body><h1>Authorization complete</h1>"
    "<p>You can close this window and return to the terminal.</p></body></html>"
)
FAILURE_PAGE = (
    "<html><body><h1>Authorization failed</h1>"
    "<p>Spotify returned <code>{error}</code>. Check the terminal for details."
    "</p></body></html>"
)


def parse_redirect_query(params: Mapping[str, str]) -> AuthorizationResult:
    """Turn redirect query parameters into an authorization result.

    Args:
        params: Query parameters of the redirect request

    Returns:
        AuthorizationSuccess for code+state, AuthorizationFailure for error+state

    Raises:
        MalformedRedirectError: If neither pattern matches
    """
    state = params.get("state")
    if not state:
        raise MalformedRedirectError("Redirect is missing the state parameter")

    if params.get("code"):
        return AuthorizationSuccess(code=params["code"], state=state)
    if params.get("error"):
        return AuthorizationFailure(
            error=params["error"],
            state=state,
            error_description=params.get("error_description"),
        )

    raise MalformedRedirectError("Redirect carries neither code nor error")


class RedirectCapture:
    """Accepts exactly one redirect on the configured redirect URI.

    Usage::

        async with RedirectCapture(redirect_uri) as capture:
            open_browser(authorization_url)
            result = await capture.wait()

    Requests after the first get a 409 until the context exits, after which
    the port is closed.
    """

    def __init__(self, redirect_uri: str, timeout: float = 120.0):
        parsed = urlparse(redirect_uri)
        if not parsed.hostname:
            raise ValueError(f"redirect_uri has no host: {redirect_uri}")

        self.host = parsed.hostname
        self.port = parsed.port or (443 if parsed.scheme == "https" else 80)
        self.path = parsed.path or "/"
        self.timeout = timeout

        self._outcome: asyncio.Future[AuthorizationResult] | None = None
        self._socket: socket.socket | None = None
        self._bound_port: int | None = None
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task | None = None

    @property
    def bound_port(self) -> int | None:
        """Port actually bound, useful when the redirect URI asks for port 0."""
        return self._bound_port

    async def __aenter__(self) -> RedirectCapture:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Bind the port and start serving in a single worker task.

        Raises:
            CallbackListenerError: If the port cannot be bound
        """
        if self._serve_task is not None:
            raise RuntimeError("RedirectCapture is already listening")

        try:
            self._socket = socket.create_server((self.host, self.port))
            self._bound_port = self._socket.getsockname()[1]
        except OSError as e:
            raise CallbackListenerError(
                f"Cannot listen on {self.host}:{self.port}: {e}"
            ) from e

        self._outcome = asyncio.get_running_loop().create_future()

        app = Starlette(
            routes=[Route(self.path, self._handle_redirect, methods=["GET"])]
        )
        config = uvicorn.Config(
            app=app,
            log_config=None,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(
            self._server.serve(sockets=[self._socket])
        )

        logger.info(
            f"Waiting for authorization redirect on "
            f"{self.host}:{self.bound_port}{self.path}"
        )

    async def wait(self) -> AuthorizationResult:
        """Block until the redirect arrives or the timeout elapses.

        Raises:
            AuthorizationTimeoutError: If no redirect arrives in time
            MalformedRedirectError: If the redirect carried unusable parameters
            CallbackListenerError: If the listener stopped before a redirect
        """
        if self._outcome is None or self._serve_task is None:
            raise RuntimeError("RedirectCapture must be started before waiting")

        done, _ = await asyncio.wait(
            {self._outcome, self._serve_task},
            timeout=self.timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )

        if self._outcome in done:
            return self._outcome.result()

        if self._serve_task in done:
            if self._serve_task.cancelled():
                raise CallbackListenerError(
                    "Redirect listener was cancelled before a redirect arrived"
                )
            error = self._serve_task.exception()
            if error is None:
                raise CallbackListenerError(
                    "Redirect listener shut down before a redirect arrived"
                )
            raise CallbackListenerError(
                f"Redirect listener failed before a redirect arrived: {error}"
            ) from error

        raise AuthorizationTimeoutError(
            f"No authorization redirect received within {self.timeout} seconds"
        )

    async def close(self) -> None:
        """Stop the server and release the port."""
        try:
            if self._serve_task is not None and not self._serve_task.done():
                self._server.should_exit = True
                try:
                    await self._serve_task
                except Exception as e:
                    logger.warning(f"Redirect listener stopped with error: {e}")
        finally:
            if self._serve_task is not None and not self._serve_task.done():
                self._serve_task.cancel()
            if self._server is not None:
                # Startup can finish after should_exit was set, skipping shutdown
                for server in getattr(self._server, "servers", []):
                    server.close()
            if self._socket is not None:
                self._socket.close()
                logger.debug(f"Released redirect listener on port {self._bound_port}")
            self._socket = None
            self._bound_port = None
            self._serve_task = None
            self._server = None

    async def _handle_redirect(self, request: Request) -> Response:
        """Settle the outcome from the first request and refuse the rest."""
        if self._outcome is None or self._outcome.done():
            logger.warning("Refusing extra request to the redirect listener")
            return PlainTextResponse("Redirect already captured", status_code=409)

        try:
            result = parse_redirect_query(request.query_params)
        except MalformedRedirectError as e:
            self._outcome.set_exception(e)
            return PlainTextResponse(str(e), status_code=400)

        self._outcome.set_result(result)

        if isinstance(result, AuthorizationFailure):
            logger.warning(f"Authorization redirect contained error: {result.error}")
            page = FAILURE_PAGE.format(error=html.escape(result.error))
            return HTMLResponse(page)

        logger.info("Authorization redirect received - got authorization code")
        return HTMLResponse(SUCCESS_PAGE)
