"""PKCE pair model (RFC 7636)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PKCEPair:
    """Verifier and derived S256 challenge for a single authorization attempt.

    Never reused: a new pair is generated for every attempt and discarded once
    the code has been exchanged or the attempt abandoned.
    """

    verifier: str = field(repr=False)
    challenge: str = field()
    challenge_method: str = field(default="S256")

    def __post_init__(self) -> None:
        if not (43 <= len(self.verifier) <= 128):
            raise ValueError("verifier must be 43-128 characters")
        if len(self.challenge) != 43:
            raise ValueError("challenge must be a 43 character S256 digest")
        if self.challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")
