"""Token exchange request and token set models."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3).

    Immutable request parameters, including the PKCE code_verifier (RFC 7636).
    """

    code: str
    redirect_uri: str
    client_id: str
    code_verifier: str
    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Returns:
            Dictionary suitable for httpx data parameter
        """
        return {
            "grant_type": self.grant_type,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": self.code_verifier,
        }


class TokenSet(BaseModel):
    """Tokens returned by Spotify's token endpoint.

    Only built from a fully validated response, so every instance is safe to
    persist.
    """

    access_token: str = Field(min_length=1, repr=False)
    refresh_token: str = Field(min_length=1, repr=False)
    expires_in: int = Field(ge=0)
    token_type: str = "Bearer"
    # Space-separated list of scopes granted for this access token
    scope: str | None = None

    @property
    def granted_scopes(self) -> frozenset[str]:
        return frozenset(self.scope.split()) if self.scope else frozenset()
