"""Authorization request and redirect result models.

Contains the request sent to Spotify's authorize endpoint and the two
possible outcomes of the redirect back to us.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlencode, urlparse

SPOTIFY_SCOPES: frozenset[str] = frozenset(
    {
        "user-read-playback-state",
        "user-read-currently-playing",
        "playlist-read-private",
        "user-read-playback-position",
        "user-top-read",
        "user-read-recently-played",
        "user-library-read",
    }
)


@dataclass(frozen=True)
class AuthorizationRequest:
    """Parameters for one authorization attempt.

    The state nonce must come back unmodified in the redirect. The request is
    discarded once that redirect has been validated.
    """

    client_id: str
    redirect_uri: str
    scopes: frozenset[str]
    state: str = field(repr=False)
    code_challenge: str
    code_challenge_method: str = "S256"

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ValueError("client_id must not be empty")

        parsed = urlparse(self.redirect_uri)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"redirect_uri must be absolute: {self.redirect_uri}")

        if not self.scopes:
            raise ValueError("At least one scope is required")
        unknown = set(self.scopes) - SPOTIFY_SCOPES
        if unknown:
            raise ValueError(f"Unrecognized scopes: {', '.join(sorted(unknown))}")

        if not self.state:
            raise ValueError("state must not be empty")

        # Accept any iterable of scopes but store an immutable set
        object.__setattr__(self, "scopes", frozenset(self.scopes))

    @property
    def scope(self) -> str:
        """Space-joined scopes, sorted so the URL is deterministic."""
        return " ".join(sorted(self.scopes))

    def build_authorization_url(self, authorization_endpoint: str) -> str:
        """Build the complete authorization URL."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "code_challenge_method": self.code_challenge_method,
            "code_challenge": self.code_challenge,
            "scope": self.scope,
            "state": self.state,
        }

        return f"{authorization_endpoint}?{urlencode(params)}"


@dataclass(frozen=True)
class AuthorizationSuccess:
    code: str = field(repr=False)
    state: str


@dataclass(frozen=True)
class AuthorizationFailure:
    error: str
    state: str
    error_description: str | None = None


AuthorizationResult = AuthorizationSuccess | AuthorizationFailure
