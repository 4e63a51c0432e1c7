"""PKCE (Proof Key for Code Exchange) generation.

Implements RFC 7636 verifier and S256 challenge generation to prevent
authorization code interception attacks.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from spotify_stats.auth.models.errors import EntropyUnavailableError
from spotify_stats.auth.models.security import PKCEPair

# RFC 7636 Section 4.1 unreserved characters
VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"
DEFAULT_VERIFIER_LENGTH = 64


class PKCEManager:
    """Generates PKCE verifier/challenge pairs for authorization attempts.

    This implementation follows RFC 7636 requirements:
    - Verifier drawn from the unreserved character set only
    - S256 code challenge method (SHA256 + base64url, no padding)
    - A fresh pair per call, never cached
    """

    def generate_parameters(self, length: int = DEFAULT_VERIFIER_LENGTH) -> PKCEPair:
        """Generate a new PKCE pair.

        Args:
            length: Verifier length, 43-128 characters

        Returns:
            PKCEPair: Immutable pair for one authorization attempt

        Raises:
            ValueError: If length is outside 43-128
            EntropyUnavailableError: If the secure random source is unusable
        """
        if not (43 <= length <= 128):
            raise ValueError("PKCE verifier length must be 43-128 characters")

        try:
            verifier = self._generate_code_verifier(length)
        except (NotImplementedError, OSError) as e:
            raise EntropyUnavailableError(
                f"Secure random source unavailable: {e}"
            ) from e

        return PKCEPair(
            verifier=verifier,
            challenge=self.generate_code_challenge(verifier),
        )

    @staticmethod
    def generate_code_challenge(code_verifier: str) -> str:
        """BASE64URL-ENCODE(SHA256(ASCII(code_verifier))) without padding."""
        digest = hashlib.sha256(code_verifier.encode("ascii")).digest()

        return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")

    def _generate_code_verifier(self, length: int) -> str:
        return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))
