"""Bootstrap credentials for the secrets manager itself.

These are the machine credentials used to reach the secrets manager, not
the Spotify tokens kept inside it. They are loaded once and passed
explicitly to the store that needs them.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from spotify_stats.auth.models.errors import SecretReadError

DEFAULT_SECRETS_CONFIG = "bitwarden_config.json"


class SecretsManagerConfig(BaseModel):
    """Machine account credentials for Bitwarden Secrets Manager."""

    access_token: str = Field(min_length=1, repr=False)
    org_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)

    # Self-hosted or EU instances override these
    api_url: str = "https://api.bitwarden.com"
    identity_url: str = "https://identity.bitwarden.com"


def load_secrets_config(
    path: str | os.PathLike[str] = DEFAULT_SECRETS_CONFIG,
) -> SecretsManagerConfig:
    """Load the secrets manager bootstrap file.

    Args:
        path: JSON file with access_token, org_id and project_id

    Raises:
        SecretReadError: If the file is missing, unreadable or incomplete
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SecretReadError(f"Cannot read secrets config {path}: {e}") from e

    try:
        return SecretsManagerConfig.model_validate_json(raw)
    except ValidationError as e:
        raise SecretReadError(f"Invalid secrets config {path}: {e}") from e
