"""Security-related models for OAuth PKCE authentication."""

from __future__ import annotations

import string
from dataclasses import dataclass, field

_VERIFIER_CHARS = frozenset(string.ascii_letters + string.digits + "-._~")


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE parameters for a single authorization round-trip (RFC 7636).

    Immutable. Created fresh per sign-in attempt and discarded once the
    callback has been handled, successfully or not.
    """

    code_verifier: str = field()
    code_challenge: str = field()
    state: str = field()
    code_challenge_method: str = field(default="S256")

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if not set(self.code_verifier) <= _VERIFIER_CHARS:
            raise ValueError("code_verifier must use unreserved characters only")
        if not (43 <= len(self.code_challenge) <= 128):
            raise ValueError("code_challenge must be 43-128 characters")
        if not self.state:
            raise ValueError("state must not be empty")
        if self.code_challenge_method != "S256":
            raise ValueError("Only S256 code challenge method is supported")
