"""Spotify Web API client for playback data."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from spotify_stats.api.models import CurrentlyPlaying
from spotify_stats.auth.models.errors import NetworkError, SpotifyAPIError

logger = logging.getLogger(__name__)

SPOTIFY_API_URL = "https://api.spotify.com/v1"


class SpotifyClient:
    """Reads playback state with a bearer access token."""

    def __init__(
        self,
        base_url: str = SPOTIFY_API_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def get_currently_playing(self, access_token: str) -> CurrentlyPlaying | None:
        """Fetch the track the user is currently playing.

        Returns:
            CurrentlyPlaying, or None when nothing is playing (HTTP 204)

        Raises:
            SpotifyAPIError: On a non-success status or unparseable body
            NetworkError: On transport failure
        """
        url = f"{self.base_url}/me/player/currently-playing"
        logger.debug(f"GET {url}")

        try:
            response = await self._http_client.get(
                url, headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"HTTP error calling Spotify API: {e}") from e

        if response.status_code == 204:
            logger.info("Nothing is currently playing")
            return None

        if not 200 <= response.status_code < 300:
            raise SpotifyAPIError(response.status_code, response.text)

        try:
            return CurrentlyPlaying.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SpotifyAPIError(
                response.status_code, f"Unexpected response body: {e}"
            ) from e

    async def close(self) -> None:
        await self._http_client.aclose()
