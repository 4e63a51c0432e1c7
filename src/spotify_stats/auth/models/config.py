"""Configuration for the Spotify authorization flow."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from spotify_stats.auth.models.flow import SPOTIFY_SCOPES

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_REDIRECT_URI = "http://localhost:8080/"


@dataclass(frozen=True)
class SpotifyAuthConfig:
    """Settings for one authorization attempt.

    client_id may be left unset, in which case it is read from the
    ``spotify_client_id`` secret.
    """

    client_id: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: frozenset[str] = field(default=SPOTIFY_SCOPES)
    authorize_endpoint: str = SPOTIFY_AUTHORIZE_URL
    token_endpoint: str = SPOTIFY_TOKEN_URL
    redirect_timeout: float = 120.0  # seconds to wait for the browser redirect
    http_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> SpotifyAuthConfig:
        """Build a config from SPOTIFY_* environment variables.

        Unset variables keep their defaults. SPOTIFY_SCOPES is space or comma
        separated.
        """
        kwargs: dict = {}

        if client_id := os.getenv("SPOTIFY_CLIENT_ID"):
            kwargs["client_id"] = client_id
        if redirect_uri := os.getenv("SPOTIFY_REDIRECT_URI"):
            kwargs["redirect_uri"] = redirect_uri
        if scopes := os.getenv("SPOTIFY_SCOPES"):
            kwargs["scopes"] = frozenset(scopes.replace(",", " ").split())
        if timeout := os.getenv("SPOTIFY_REDIRECT_TIMEOUT"):
            kwargs["redirect_timeout"] = float(timeout)

        return cls(**kwargs)
