"""Exception hierarchy for Spotify authorization and token storage.

Each failure mode gets its own type so callers can report exactly what went
wrong. Everything except EntropyUnavailableError is recovered by restarting the
authorization attempt with a fresh state and PKCE pair.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spotify_stats.auth.models.tokens import TokenSet


class SpotifyAuthError(Exception):
    """Base exception for all spotify_stats errors."""

    pass


class EntropyUnavailableError(SpotifyAuthError):
    """Raised when the system's secure random source cannot be used.

    This is fatal: no verifier or state can be generated safely.
    """

    pass


class MalformedRedirectError(SpotifyAuthError):
    """Raised when the redirect carries neither code+state nor error+state."""

    pass


class AuthorizationTimeoutError(SpotifyAuthError):
    """Raised when no redirect arrives within the configured window."""

    pass


class CallbackListenerError(SpotifyAuthError):
    """Raised when the local redirect listener cannot bind its port."""

    pass


class StateMismatchError(SpotifyAuthError):
    """Raised when the redirect state doesn't match the request state.

    Could indicate a CSRF attack or a stale browser tab from an older attempt.
    """

    pass


class AuthorizationDeniedError(SpotifyAuthError):
    """Raised when the provider redirected back with an error."""

    def __init__(self, error: str, error_description: str | None = None):
        self.error = error
        self.error_description = error_description
        message = f"Authorization denied: {error}"
        if error_description:
            message += f" ({error_description})"
        super().__init__(message)


class TokenExchangeRejectedError(SpotifyAuthError):
    """Raised when the token endpoint answers with a non-200 status.

    Carries the provider's error code and the raw body so the caller can
    surface them.
    """

    def __init__(self, status_code: int, error: str | None, body: str):
        self.status_code = status_code
        self.error = error
        self.body = body
        super().__init__(
            f"Token exchange rejected with {status_code}: {error or body}"
        )


class MalformedTokenResponseError(SpotifyAuthError):
    """Raised when a 200 token response lacks required fields."""

    pass


class NetworkError(SpotifyAuthError):
    """Raised on transport failures talking to Spotify."""

    pass


class SecretWriteError(SpotifyAuthError):
    """Raised when the secret store rejects a write.

    When raised after a successful exchange, token_set holds the validated
    tokens so the write can be retried without a new handshake.
    """

    def __init__(self, message: str, token_set: TokenSet | None = None):
        self.token_set = token_set
        super().__init__(message)


class SecretReadError(SpotifyAuthError):
    """Raised when a secret is missing or the store cannot be read."""

    pass


class SpotifyAPIError(SpotifyAuthError):
    """Raised when a Web API call returns a non-success status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Spotify API returned {status_code}: {body}")
