"""Tests for the one-shot redirect listener.

Runs a real listener on the loopback interface and drives it with httpx.
"""

import asyncio
import socket

import httpx
import pytest

from spotify_stats.auth.models.errors import (
    AuthorizationTimeoutError,
    CallbackListenerError,
    MalformedRedirectError,
)
from spotify_stats.auth.models.flow import AuthorizationFailure, AuthorizationSuccess
from spotify_stats.auth.services.redirect import RedirectCapture, parse_redirect_query

REDIRECT_URI = "http://127.0.0.1:0/callback"


def assert_port_released(port: int) -> None:
    # Binding succeeds only once the listener has closed its socket
    with socket.create_server(("127.0.0.1", port)):
        pass


class TestParseRedirectQuery:
    def test_code_and_state_is_success(self):
        result = parse_redirect_query({"code": "XYZ", "state": "S1"})

        assert result == AuthorizationSuccess(code="XYZ", state="S1")

    def test_error_and_state_is_failure(self):
        result = parse_redirect_query({"error": "access_denied", "state": "S1"})

        assert result == AuthorizationFailure(error="access_denied", state="S1")

    def test_error_description_is_kept(self):
        result = parse_redirect_query(
            {"error": "access_denied", "error_description": "nope", "state": "S1"}
        )

        assert isinstance(result, AuthorizationFailure)
        assert result.error_description == "nope"

    def test_outcome_kind_is_carried_by_type_only(self):
        success = parse_redirect_query({"code": "XYZ", "state": "S1"})
        failure = parse_redirect_query({"error": "access_denied", "state": "S1"})

        assert type(success) is AuthorizationSuccess
        assert type(failure) is AuthorizationFailure
        assert not hasattr(success, "is_success")
        assert not hasattr(failure, "is_success")

    @pytest.mark.parametrize(
        "params",
        [
            {},
            {"code": "XYZ"},
            {"error": "access_denied"},
            {"state": "S1"},
            {"code": "", "state": "S1"},
            {"foo": "bar", "state": "S1"},
        ],
    )
    def test_unrecognized_patterns_are_malformed(self, params):
        with pytest.raises(MalformedRedirectError):
            parse_redirect_query(params)


class TestRedirectCapture:
    async def test_captures_success_redirect(self):
        # Arrange
        async with RedirectCapture(REDIRECT_URI, timeout=5) as capture:
            url = f"http://127.0.0.1:{capture.bound_port}/callback"

            # Act
            async with httpx.AsyncClient() as client:
                response = await client.get(url, params={"code": "XYZ", "state": "S1"})
            result = await capture.wait()

        # Assert
        assert response.status_code == 200
        assert "Authorization complete" in response.text
        assert result == AuthorizationSuccess(code="XYZ", state="S1")

    async def test_captures_error_redirect(self):
        async with RedirectCapture(REDIRECT_URI, timeout=5) as capture:
            url = f"http://127.0.0.1:{capture.bound_port}/callback"
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    url, params={"error": "access_denied", "state": "S1"}
                )
            result = await capture.wait()

        assert response.status_code == 200
        assert "access_denied" in response.text
        assert result == AuthorizationFailure(error="access_denied", state="S1")

    async def test_second_request_is_refused(self):
        # Arrange
        async with RedirectCapture(REDIRECT_URI, timeout=5) as capture:
            port = capture.bound_port
            url = f"http://127.0.0.1:{port}/callback"

            # Act
            async with httpx.AsyncClient() as client:
                first = await client.get(url, params={"code": "first", "state": "S1"})
                second = await client.get(
                    url, params={"code": "second", "state": "S1"}
                )
            result = await capture.wait()

        # Assert - only the first request counts
        assert first.status_code == 200
        assert second.status_code == 409
        assert result.code == "first"

        # Port is closed once the context exits
        async with httpx.AsyncClient() as client:
            with pytest.raises(httpx.ConnectError):
                await client.get(url, params={"code": "third", "state": "S1"})
        assert_port_released(port)

    async def test_malformed_redirect_raises(self):
        async with RedirectCapture(REDIRECT_URI, timeout=5) as capture:
            url = f"http://127.0.0.1:{capture.bound_port}/callback"
            async with httpx.AsyncClient() as client:
                response = await client.get(url, params={"foo": "bar"})

            with pytest.raises(MalformedRedirectError):
                await capture.wait()

        assert response.status_code == 400

    async def test_other_paths_do_not_settle_the_redirect(self):
        async with RedirectCapture(REDIRECT_URI, timeout=5) as capture:
            base = f"http://127.0.0.1:{capture.bound_port}"
            async with httpx.AsyncClient() as client:
                favicon = await client.get(f"{base}/favicon.ico")
                response = await client.get(
                    f"{base}/callback", params={"code": "XYZ", "state": "S1"}
                )
            result = await capture.wait()

        assert favicon.status_code == 404
        assert response.status_code == 200
        assert result.code == "XYZ"

    async def test_timeout_raises_and_releases_port(self):
        # Arrange
        capture = RedirectCapture(REDIRECT_URI, timeout=0.2)

        # Act & Assert
        async with capture:
            port = capture.bound_port
            with pytest.raises(AuthorizationTimeoutError):
                await capture.wait()

        assert capture.bound_port is None
        assert_port_released(port)

    async def test_cancellation_releases_port(self):
        # Arrange
        ports: list[int] = []
        listening = asyncio.Event()

        async def run_capture():
            async with RedirectCapture(REDIRECT_URI, timeout=30) as capture:
                ports.append(capture.bound_port)
                listening.set()
                await capture.wait()

        task = asyncio.create_task(run_capture())
        await listening.wait()
        await asyncio.sleep(0.2)

        # Act
        task.cancel()

        # Assert
        with pytest.raises(asyncio.CancelledError):
            await task
        assert_port_released(ports[0])

    async def test_listener_stopping_early_is_reported(self):
        # Arrange
        capture = RedirectCapture(REDIRECT_URI, timeout=5)

        async with capture:
            port = capture.bound_port
            capture._server.should_exit = True

            # Act & Assert
            with pytest.raises(CallbackListenerError, match="shut down"):
                await capture.wait()

        assert_port_released(port)

    async def test_cancelled_listener_is_reported(self):
        # Arrange
        capture = RedirectCapture(REDIRECT_URI, timeout=5)

        async with capture:
            port = capture.bound_port
            capture._serve_task.cancel()

            # Act & Assert
            with pytest.raises(CallbackListenerError, match="cancelled"):
                await capture.wait()

        assert_port_released(port)

    async def test_port_in_use_raises_listener_error(self):
        # Arrange
        with socket.create_server(("127.0.0.1", 0)) as occupied:
            port = occupied.getsockname()[1]
            capture = RedirectCapture(f"http://127.0.0.1:{port}/", timeout=1)

            # Act & Assert
            with pytest.raises(CallbackListenerError):
                async with capture:
                    pass

    async def test_wait_before_start_raises(self):
        with pytest.raises(RuntimeError):
            await RedirectCapture(REDIRECT_URI).wait()

    def test_redirect_uri_without_host_rejected(self):
        with pytest.raises(ValueError):
            RedirectCapture("/callback")
