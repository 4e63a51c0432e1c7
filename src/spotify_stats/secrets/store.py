"""Secret store interface and a local JSON file implementation.

The authorization flow only ever needs two operations, get and set by name,
so any secrets manager can sit behind this protocol.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from spotify_stats.auth.models.errors import SecretReadError, SecretWriteError

logger = logging.getLogger(__name__)

CLIENT_ID_SECRET = "spotify_client_id"


class SecretStore(Protocol):
    """Key-value access to an external secrets manager."""

    def get_secret(self, name: str) -> str:
        """Return the value stored under name.

        Raises:
            SecretReadError: If the secret is missing or unreadable
        """
        ...

    def set_secret(self, name: str, value: str) -> None:
        """Create or overwrite the secret stored under name.

        Raises:
            SecretWriteError: If the store rejects the write
        """
        ...


class FileSecretStore:
    """Secrets kept in a local JSON object of name -> value.

    Every write rewrites the whole file through a temp file and rename, so
    a crash never leaves a half-written file behind. Meant for development
    machines without a secrets manager.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def get_secret(self, name: str) -> str:
        secrets = self._read()
        if name not in secrets:
            raise SecretReadError(f"Secret {name} not found in {self.path}")
        return secrets[name]

    def set_secret(self, name: str, value: str) -> None:
        try:
            secrets = self._read()
        except SecretReadError as e:
            raise SecretWriteError(f"Cannot update {self.path}: {e}") from e

        secrets[name] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(secrets, f, indent=2)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise SecretWriteError(f"Failed to write secret {name}: {e}") from e

        logger.debug(f"Wrote secret {name} to {self.path}")

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SecretReadError(
                f"Secret file {self.path} is unreadable or corrupted: {e}"
            ) from e

        if not isinstance(data, dict):
            raise SecretReadError(f"Secret file {self.path} must hold a JSON object")
        return data
