"""Authorization code to token exchange against Spotify's token endpoint.

Implements RFC 6749 Section 4.1.3 with the PKCE code_verifier (RFC 7636).
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from spotify_stats.auth.models.errors import (
    AuthorizationDeniedError,
    MalformedTokenResponseError,
    NetworkError,
    TokenExchangeRejectedError,
)
from spotify_stats.auth.models.flow import (
    AuthorizationFailure,
    AuthorizationRequest,
    AuthorizationResult,
)
from spotify_stats.auth.models.tokens import TokenRequest, TokenSet
from spotify_stats.auth.services.security import validate_state

logger = logging.getLogger(__name__)


class SpotifyTokenClient:
    """Exchanges a validated authorization code for a token set.

    Validating the redirect state against the originating request is this
    client's job. Nothing is sent when the state doesn't match.

    Authorization codes are single use, so a failed exchange is never retried;
    the caller restarts the whole attempt instead.
    """

    def __init__(
        self,
        token_endpoint: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the token client.

        Args:
            token_endpoint: Spotify token endpoint URL
            timeout: HTTP request timeout in seconds
            http_client: Optional pre-configured client, mainly for tests
        """
        self.token_endpoint = token_endpoint
        self.timeout = timeout
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def exchange_code(
        self,
        request: AuthorizationRequest,
        result: AuthorizationResult,
        code_verifier: str,
    ) -> TokenSet:
        """Exchange the authorization code for access and refresh tokens.

        Args:
            request: The request this attempt started with
            result: Outcome captured from the redirect
            code_verifier: PKCE verifier matching request.code_challenge

        Returns:
            TokenSet: Fully validated tokens

        Raises:
            StateMismatchError: If result.state doesn't match request.state
            AuthorizationDeniedError: If the redirect carried an error
            TokenExchangeRejectedError: If the endpoint answers non-200
            MalformedTokenResponseError: If a 200 body lacks required fields
            NetworkError: On transport failure
        """
        validate_state(request.state, result.state)

        if isinstance(result, AuthorizationFailure):
            raise AuthorizationDeniedError(result.error, result.error_description)

        token_request = TokenRequest(
            code=result.code,
            redirect_uri=request.redirect_uri,
            client_id=request.client_id,
            code_verifier=code_verifier,
        )
        form_data = token_request.to_form_data()

        logger.debug(
            f"Token request: grant_type={form_data['grant_type']}, "
            f"client_id={form_data['client_id']}, endpoint={self.token_endpoint}"
        )

        try:
            response = await self._http_client.post(
                self.token_endpoint,
                data=form_data,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"HTTP error during token exchange: {e}") from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: httpx.Response) -> TokenSet:
        """Parse the token endpoint response.

        Raises:
            TokenExchangeRejectedError: For any non-200 status
            MalformedTokenResponseError: If the 200 body is unusable
        """
        if response.status_code != 200:
            error = None
            try:
                payload = response.json()
                if isinstance(payload, dict):
                    error = payload.get("error")
            except ValueError:
                pass  # Non-JSON error bodies are surfaced raw

            logger.warning(
                f"Token exchange failed with {response.status_code}: "
                f"{error or response.text}"
            )
            raise TokenExchangeRejectedError(response.status_code, error, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedTokenResponseError(
                f"Token response is not valid JSON: {e}"
            ) from e

        if not isinstance(payload, dict):
            raise MalformedTokenResponseError("Token response is not a JSON object")

        missing = [
            name
            for name in ("access_token", "refresh_token", "expires_in")
            if name not in payload
        ]
        if missing:
            raise MalformedTokenResponseError(
                f"Token response missing required fields: {', '.join(missing)}"
            )

        try:
            token_set = TokenSet.model_validate(payload)
        except ValidationError as e:
            raise MalformedTokenResponseError(
                f"Invalid token response format: {e}"
            ) from e

        logger.info("Token exchange successful")
        return token_set

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
