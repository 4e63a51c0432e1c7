"""
Authorize spotify-stats against your Spotify account and show what's playing.

Tokens go to Bitwarden Secrets Manager when SPOTIFY_STATS_SECRETS_CONFIG points
at a bootstrap file (access_token, org_id, project_id), otherwise to the JSON
file named by SPOTIFY_STATS_SECRETS_FILE (default: user_auth.json).

Spotify Web API: https://developer.spotify.com/documentation/web-api
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from spotify_stats.api.client import SpotifyClient
from spotify_stats.api.models import CurrentlyPlaying
from spotify_stats.auth.models.config import SpotifyAuthConfig
from spotify_stats.auth.models.errors import (
    AuthorizationDeniedError,
    SecretReadError,
    SecretWriteError,
    SpotifyAPIError,
    SpotifyAuthError,
    TokenExchangeRejectedError,
)
from spotify_stats.auth.models.tokens import TokenSet
from spotify_stats.auth.oauth_client import SpotifyAuthenticator
from spotify_stats.secrets.store import FileSecretStore, SecretStore

logger = logging.getLogger("spotify_stats")


def build_secret_store() -> SecretStore:
    config_path = os.getenv("SPOTIFY_STATS_SECRETS_CONFIG")
    if config_path:
        from spotify_stats.secrets.bitwarden import BitwardenSecretStore
        from spotify_stats.secrets.config import load_secrets_config

        return BitwardenSecretStore(load_secrets_config(config_path))

    return FileSecretStore(os.getenv("SPOTIFY_STATS_SECRETS_FILE", "user_auth.json"))


async def authenticate_and_store(authenticator: SpotifyAuthenticator) -> TokenSet:
    """Run the handshake, retrying the token write once if storing fails."""
    try:
        return await authenticator.authenticate()
    except SecretWriteError as e:
        if e.token_set is None:
            raise
        logger.warning(f"Storing tokens failed ({e}), retrying the write once")
        authenticator.session_store.save(e.token_set)
        return e.token_set


async def fetch_currently_playing(
    authenticator: SpotifyAuthenticator, spotify: SpotifyClient
) -> CurrentlyPlaying | None:
    """Fetch playback with the stored token, authorizing only when needed.

    A new handshake runs when no access token is stored or Spotify answers
    401 to the stored one.
    """
    try:
        access_token = authenticator.session_store.load_access_token()
    except SecretReadError:
        logger.info("No stored Spotify session, starting authorization")
    else:
        try:
            return await spotify.get_currently_playing(access_token)
        except SpotifyAPIError as e:
            if e.status_code != 401:
                raise
            logger.warning("Stored access token was rejected, authorizing again")

    token_set = await authenticate_and_store(authenticator)
    return await spotify.get_currently_playing(token_set.access_token)


async def main() -> int:
    try:
        config = SpotifyAuthConfig.from_env()
        secret_store = build_secret_store()
    except (SpotifyAuthError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    authenticator = SpotifyAuthenticator(config, secret_store)
    spotify = SpotifyClient()

    try:
        playing = await fetch_currently_playing(authenticator, spotify)
    except TokenExchangeRejectedError as e:
        logger.error(f"Spotify rejected the token exchange: {e.body}")
        return 1
    except AuthorizationDeniedError as e:
        logger.error(f"Authorization denied: {e.error}")
        return 1
    except SpotifyAuthError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except ValueError as e:
        # Invalid client id, redirect URI or scopes surface from the request
        logger.error(f"Configuration error: {e}")
        return 1
    finally:
        await authenticator.close()
        await spotify.close()

    track = playing.track if playing else None
    if track:
        artists = ", ".join(artist.name for artist in track.artists)
        logger.info(f"Currently playing: {track.name} by {artists}")
    else:
        logger.warning("No track info found")
    return 0


def run() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s"
    )
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
