import pytest

from spotify_stats.auth.models.errors import SecretReadError, SecretWriteError


class FakeSecretStore:
    """In-memory secret store that records every write."""

    def __init__(self, secrets: dict[str, str] | None = None):
        self.secrets: dict[str, str] = dict(secrets or {})
        self.writes: list[tuple[str, str]] = []
        self.fail_writes = False
        # Fail only the Nth write attempt (1-based)
        self.fail_on_write: int | None = None
        self.write_attempts = 0

    def get_secret(self, name: str) -> str:
        if name not in self.secrets:
            raise SecretReadError(f"Secret {name} not found")
        return self.secrets[name]

    def set_secret(self, name: str, value: str) -> None:
        self.write_attempts += 1
        if self.fail_writes or self.write_attempts == self.fail_on_write:
            raise SecretWriteError("Secrets manager rejected the write")
        self.writes.append((name, value))
        self.secrets[name] = value


@pytest.fixture
def secret_store() -> FakeSecretStore:
    return FakeSecretStore({"spotify_client_id": "client-from-secrets"})


@pytest.fixture
def empty_secret_store() -> FakeSecretStore:
    return FakeSecretStore()
