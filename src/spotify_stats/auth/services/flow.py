"""Authorization request construction.

Generates the per-attempt state nonce and assembles the request whose URL the
user opens in a browser.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from spotify_stats.auth.models.flow import AuthorizationRequest
from spotify_stats.auth.models.security import PKCEPair
from spotify_stats.auth.services.security import generate_state

logger = logging.getLogger(__name__)


class OAuth2FlowManager:
    """Builds authorization requests for Spotify's authorize endpoint.

    Every call produces a new state nonce. The returned request, together
    with the PKCE pair it was built from, must be held until the redirect is
    captured; losing either means starting over.
    """

    def __init__(self, authorization_endpoint: str):
        self.authorization_endpoint = authorization_endpoint

    def start_authorization_flow(
        self,
        client_id: str,
        redirect_uri: str,
        scopes: Iterable[str],
        pkce: PKCEPair,
    ) -> tuple[str, AuthorizationRequest]:
        """Start an authorization attempt.

        Args:
            client_id: Spotify application client id
            redirect_uri: Absolute URI Spotify redirects back to
            scopes: Recognized Spotify scopes to request
            pkce: Fresh PKCE pair for this attempt

        Returns:
            Tuple of (authorization_url, authorization_request)

        Raises:
            ValueError: If client_id, redirect_uri or scopes are invalid
            EntropyUnavailableError: If no state nonce can be generated
        """
        request = AuthorizationRequest(
            client_id=client_id,
            redirect_uri=redirect_uri,
            scopes=frozenset(scopes),
            state=generate_state(),
            code_challenge=pkce.challenge,
            code_challenge_method=pkce.challenge_method,
        )
        authorization_url = request.build_authorization_url(
            self.authorization_endpoint
        )

        logger.info(f"Generated authorization URL for client {client_id}")
        logger.debug(f"Requested scopes: {request.scope}")

        return authorization_url, request
