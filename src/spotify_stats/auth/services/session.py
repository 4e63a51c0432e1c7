"""Persists exchanged tokens into the secret store."""

from __future__ import annotations

import logging

from spotify_stats.auth.models.errors import SecretReadError, SecretWriteError
from spotify_stats.auth.models.tokens import TokenSet
from spotify_stats.secrets.store import SecretStore

logger = logging.getLogger(__name__)

ACCESS_TOKEN_SECRET = "spotify_access_token"
REFRESH_TOKEN_SECRET = "spotify_refresh_token"


class SessionStore:
    """Writes a token set under fixed secret names.

    A failed write leaves the caller's TokenSet untouched so save() can be
    retried without repeating the authorization handshake.
    """

    def __init__(self, store: SecretStore):
        self._store = store

    def save(self, token_set: TokenSet) -> tuple[str, ...]:
        """Write the access and refresh tokens.

        If a later write fails, the secrets already written in this call are
        restored to their previous values, so the store never pairs a new
        access token with an old refresh token. A secret that did not exist
        before is blanked, which load_access_token() treats as absent.

        Returns:
            Names of the secrets written

        Raises:
            SecretWriteError: If the store rejects either write
        """
        updates = (
            (ACCESS_TOKEN_SECRET, token_set.access_token),
            (REFRESH_TOKEN_SECRET, token_set.refresh_token),
        )
        previous = {name: self._read_previous(name) for name, _ in updates}

        written: list[str] = []
        try:
            for name, value in updates:
                self._store.set_secret(name, value)
                written.append(name)
        except SecretWriteError:
            self._rollback(written, previous)
            raise

        logger.info(f"Stored Spotify session tokens ({', '.join(written)})")
        return tuple(written)

    def _read_previous(self, name: str) -> str:
        try:
            return self._store.get_secret(name)
        except SecretReadError:
            return ""

    def _rollback(self, written: list[str], previous: dict[str, str]) -> None:
        for name in reversed(written):
            try:
                self._store.set_secret(name, previous[name])
            except SecretWriteError as e:
                raise SecretWriteError(
                    f"Failed to restore secret {name} after a partial write: {e}"
                ) from e
        if written:
            logger.warning(f"Rolled back partial token write ({', '.join(written)})")

    def load_access_token(self) -> str:
        """Read back the stored access token.

        Raises:
            SecretReadError: If no access token has been stored
        """
        token = self._store.get_secret(ACCESS_TOKEN_SECRET)
        if not token:
            raise SecretReadError(f"Secret {ACCESS_TOKEN_SECRET} is empty")
        return token
