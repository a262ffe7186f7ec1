"""Authentication session state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AuthStatus(str, Enum):
    """Sign-in lifecycle of a DriveAuthClient."""

    SIGNED_OUT = "signed_out"
    SIGNING_IN = "signing_in"
    SIGNED_IN = "signed_in"


@dataclass(frozen=True)
class AuthSession:
    """Snapshot of the caller-visible authentication state.

    Replaced wholesale on sign-in, sign-out and expiry detection; never
    mutated in place.
    """

    is_authenticated: bool = False
    access_token: str | None = None
    expires_at: int | None = None  # Epoch milliseconds
    user_email: str | None = None

    @classmethod
    def signed_out(cls) -> AuthSession:
        return cls()
