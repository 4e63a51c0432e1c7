"""Complete Spotify authorization attempt.

Coordinates PKCE generation, the authorization URL, the redirect listener,
the token exchange and token storage as one sequential pipeline.
"""

from __future__ import annotations

import logging
import webbrowser
from typing import Protocol

from spotify_stats.auth.models.config import SpotifyAuthConfig
from spotify_stats.auth.models.errors import SecretWriteError
from spotify_stats.auth.models.tokens import TokenSet
from spotify_stats.auth.primitives.pkce import PKCEManager
from spotify_stats.auth.services.flow import OAuth2FlowManager
from spotify_stats.auth.services.redirect import RedirectCapture
from spotify_stats.auth.services.session import SessionStore
from spotify_stats.auth.services.tokens import SpotifyTokenClient
from spotify_stats.secrets.store import CLIENT_ID_SECRET, SecretStore

logger = logging.getLogger(__name__)


class AuthorizationHandler(Protocol):
    """Protocol for presenting the authorization URL to the user.

    Allows different strategies for browser interaction:
    - Open the system browser
    - Print the URL for a headless machine
    """

    async def handle_authorization(self, auth_url: str) -> None:
        """Show auth_url to the user. The redirect is captured separately."""
        ...


class BrowserAuthorizationHandler:
    """Logs the authorization URL and tries to open it in a browser."""

    def __init__(self, open_browser: bool = True):
        self.open_browser = open_browser

    async def handle_authorization(self, auth_url: str) -> None:
        logger.info(f"Open this URL in your browser to authorize the app:\n{auth_url}")
        if self.open_browser and not webbrowser.open(auth_url):
            logger.warning("Could not open a browser, open the URL manually")


class SpotifyAuthenticator:
    """Runs one authorization attempt end to end.

    Each call generates a fresh state nonce and PKCE pair. A failure at any
    stage abandons the attempt; nothing is carried over into the next one.
    """

    def __init__(
        self,
        config: SpotifyAuthConfig,
        secret_store: SecretStore,
        authorization_handler: AuthorizationHandler | None = None,
        token_client: SpotifyTokenClient | None = None,
    ):
        """Initialize the authenticator.

        Args:
            config: Endpoints, redirect URI, scopes and timeouts
            secret_store: Where the client id is read and tokens are written
            authorization_handler: How the authorization URL reaches the user
            token_client: Optional pre-built token client, mainly for tests
        """
        self.config = config
        self.authorization_handler = (
            authorization_handler or BrowserAuthorizationHandler()
        )
        self._secret_store = secret_store

        self.pkce_manager = PKCEManager()
        self.flow_manager = OAuth2FlowManager(config.authorize_endpoint)
        self.token_client = token_client or SpotifyTokenClient(
            config.token_endpoint, timeout=config.http_timeout
        )
        self.session_store = SessionStore(secret_store)

    def resolve_client_id(self) -> str:
        """Client id from config, falling back to the spotify_client_id secret."""
        if self.config.client_id:
            return self.config.client_id
        return self._secret_store.get_secret(CLIENT_ID_SECRET)

    async def authorize(self) -> TokenSet:
        """Run the handshake and return the tokens without storing them.

        Raises:
            SpotifyAuthError: Any failure along the way; restart to recover
        """
        client_id = self.resolve_client_id()
        pkce = self.pkce_manager.generate_parameters()

        auth_url, request = self.flow_manager.start_authorization_flow(
            client_id, self.config.redirect_uri, self.config.scopes, pkce
        )

        async with RedirectCapture(
            self.config.redirect_uri, timeout=self.config.redirect_timeout
        ) as capture:
            await self.authorization_handler.handle_authorization(auth_url)
            result = await capture.wait()

        logger.debug("Exchanging authorization code for tokens")
        return await self.token_client.exchange_code(request, result, pkce.verifier)

    async def authenticate(self) -> TokenSet:
        """Authorize and persist the tokens.

        Raises:
            SecretWriteError: If storing fails; its token_set carries the
                validated tokens so SessionStore.save() can be retried
        """
        logger.info("Starting Spotify authorization")
        token_set = await self.authorize()
        try:
            self.session_store.save(token_set)
        except SecretWriteError as e:
            e.token_set = token_set
            raise
        logger.info("Spotify authorization complete")
        return token_set

    async def close(self) -> None:
        await self.token_client.close()
