"""State nonce generation and validation for CSRF protection."""

from __future__ import annotations

import secrets
import string

from spotify_stats.auth.models.errors import (
    EntropyUnavailableError,
    StateMismatchError,
)


def generate_state() -> str:
    """Generate cryptographically secure state parameter.

    Returns:
        32 URL-safe characters (about 190 bits of entropy)
    """
    alphabet = string.ascii_letters + string.digits + "-._~"
    try:
        return "".join(secrets.choice(alphabet) for _ in range(32))
    except (NotImplementedError, OSError) as e:
        raise EntropyUnavailableError(f"Secure random source unavailable: {e}") from e


def validate_state(expected: str, actual: str | None) -> None:
    """Validate state parameter matches expected value.

    Args:
        expected: State parameter from original authorization request
        actual: State parameter from the redirect

    Raises:
        StateMismatchError: If state parameters don't match
    """
    if actual is None or not secrets.compare_digest(
        expected.encode(), actual.encode()
    ):
        raise StateMismatchError("State parameter mismatch - possible CSRF attack")
