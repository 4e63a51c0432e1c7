"""Secret store backed by Bitwarden Secrets Manager."""

from __future__ import annotations

import logging
from typing import Any

from bitwarden_sdk import BitwardenClient, DeviceType, client_settings_from_dict

from spotify_stats.auth.models.errors import SecretReadError, SecretWriteError
from spotify_stats.secrets.config import SecretsManagerConfig

logger = logging.getLogger(__name__)


def _check(response: Any, action: str, error_cls: type[Exception]) -> Any:
    """Unwrap an SDK response envelope, raising error_cls on failure."""
    if not getattr(response, "success", False):
        message = getattr(response, "error_message", None) or "unknown error"
        raise error_cls(f"Bitwarden failed to {action}: {message}")
    return response.data


class BitwardenSecretStore:
    """Secrets stored as Bitwarden secrets keyed by name.

    Writes upsert: an existing secret with the same key is updated in
    place, so repeated writes never create duplicate entries.
    """

    def __init__(self, config: SecretsManagerConfig, client: Any = None):
        """Initialize the store.

        Args:
            config: Machine account bootstrap credentials
            client: Optional pre-authenticated client, mainly for tests
        """
        self.config = config
        self._client = client
        self._logged_in = client is not None

    def get_secret(self, name: str) -> str:
        secret_id = self._find_secret_id(name, SecretReadError)
        if secret_id is None:
            raise SecretReadError(f"Secret {name} not found in Bitwarden")

        try:
            response = self._get_client(SecretReadError).secrets().get(secret_id)
        except Exception as e:
            raise SecretReadError(f"Failed to read secret {name}: {e}") from e

        return _check(response, f"read secret {name}", SecretReadError).value

    def set_secret(self, name: str, value: str) -> None:
        secret_id = self._find_secret_id(name, SecretWriteError)
        secrets_client = self._get_client(SecretWriteError).secrets()

        try:
            if secret_id is None:
                response = secrets_client.create(
                    organization_id=self.config.org_id,
                    key=name,
                    value=value,
                    note="",
                    project_ids=[self.config.project_id],
                )
            else:
                response = secrets_client.update(
                    organization_id=self.config.org_id,
                    id=secret_id,
                    key=name,
                    value=value,
                    note="",
                    project_ids=[self.config.project_id],
                )
        except Exception as e:
            raise SecretWriteError(f"Failed to write secret {name}: {e}") from e

        _check(response, f"write secret {name}", SecretWriteError)
        logger.debug(f"{'Created' if secret_id is None else 'Updated'} secret {name}")

    def _find_secret_id(self, name: str, error_cls: type[Exception]) -> str | None:
        try:
            response = self._get_client(error_cls).secrets().list(self.config.org_id)
        except error_cls:
            raise
        except Exception as e:
            raise error_cls(f"Failed to list Bitwarden secrets: {e}") from e

        identifiers = _check(response, "list secrets", error_cls)
        for secret in identifiers.data:
            if secret.key == name:
                return str(secret.id)
        return None

    def _get_client(self, error_cls: type[Exception]) -> Any:
        """Create and log in the SDK client on first use."""
        if self._client is None:
            self._client = BitwardenClient(
                client_settings_from_dict(
                    {
                        "apiUrl": self.config.api_url,
                        "deviceType": DeviceType.SDK,
                        "identityUrl": self.config.identity_url,
                        "userAgent": "spotify-stats",
                    }
                )
            )

        if not self._logged_in:
            try:
                response = self._client.auth().login_access_token(
                    self.config.access_token
                )
            except Exception as e:
                raise error_cls(f"Bitwarden login failed: {e}") from e
            _check(response, "log in", error_cls)
            self._logged_in = True
            logger.info("Logged in to Bitwarden Secrets Manager")

        return self._client
