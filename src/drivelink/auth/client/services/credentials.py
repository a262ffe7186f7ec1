"""Session credential storage with expiry-aware reads.

Access token, absolute expiry (epoch milliseconds) and user email are kept
as three independent entries in a session-scoped CredentialStore.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from drivelink.auth.client.storage.base import CredentialStore, StorageKeys

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_BUFFER_SECONDS = 300


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class SessionCredentials:
    """Reads and writes the signed-in user's credentials.

    Every read that observes an expired token clears the stored credentials
    before returning, so no caller ever sees a stale token.
    """

    def __init__(
        self,
        store: CredentialStore,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize the credential store wrapper.

        Args:
            store: Session-scoped key-value store
            clock: Returns the current time in epoch milliseconds
        """
        self._store = store
        self._clock = clock

    def store_auth_tokens(
        self,
        access_token: str,
        expires_in: int,
        user_email: str | None = None,
    ) -> int:
        """Persist a fresh access token.

        Args:
            access_token: Bearer token from the token endpoint
            expires_in: Token lifetime in seconds
            user_email: Signed-in user's email, if already known

        Returns:
            The absolute expiry in epoch milliseconds
        """
        expires_at = self._clock() + expires_in * 1000

        self._store.set(StorageKeys.ACCESS_TOKEN, access_token)
        self._store.set(StorageKeys.EXPIRES_AT, str(expires_at))

        # An email left over from an earlier session must not follow a new token
        if user_email:
            self._store.set(StorageKeys.USER_EMAIL, user_email)
        else:
            self._store.delete(StorageKeys.USER_EMAIL)

        return expires_at

    def store_user_email(self, user_email: str) -> None:
        self._store.set(StorageKeys.USER_EMAIL, user_email)

    def get_stored_access_token(self) -> str | None:
        """Return the stored token if it has not expired yet.

        Clears all stored credentials when the token is expired or the
        expiry entry is missing or unreadable.
        """
        token = self._store.get(StorageKeys.ACCESS_TOKEN)
        expires_at = self.get_expires_at()

        if not token or expires_at is None:
            if token or self._store.get(StorageKeys.EXPIRES_AT) is not None:
                self.clear_auth_tokens()
            return None

        if self._clock() >= expires_at:
            logger.info("Stored access token has expired; clearing credentials")
            self.clear_auth_tokens()
            return None

        return token

    def get_expires_at(self) -> int | None:
        raw = self._store.get(StorageKeys.EXPIRES_AT)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable token expiry: {raw!r}")
            return None

    def get_stored_user_email(self) -> str | None:
        return self._store.get(StorageKeys.USER_EMAIL)

    def is_token_expired(
        self, buffer_seconds: int = DEFAULT_EXPIRY_BUFFER_SECONDS
    ) -> bool:
        """Check whether the token is expired or about to expire.

        A token within ``buffer_seconds`` of its expiry counts as expired so
        that no request is sent with a token that runs out mid-flight.
        Missing expiry counts as expired.
        """
        expires_at = self.get_expires_at()
        if expires_at is None:
            return True

        return self._clock() >= expires_at - buffer_seconds * 1000

    def clear_auth_tokens(self) -> None:
        self._store.delete(StorageKeys.ACCESS_TOKEN)
        self._store.delete(StorageKeys.EXPIRES_AT)
        self._store.delete(StorageKeys.USER_EMAIL)
