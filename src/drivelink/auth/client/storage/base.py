"""Session-scoped key-value storage for credentials and in-flight PKCE state."""

from __future__ import annotations

from typing import Protocol


class StorageKeys:
    """Fixed keys for the five independent entries kept in a CredentialStore."""

    ACCESS_TOKEN = "gdrive_access_token"
    EXPIRES_AT = "gdrive_expires_at"
    USER_EMAIL = "gdrive_user_email"
    CODE_VERIFIER = "gdrive_code_verifier"
    STATE = "gdrive_state"


class CredentialStore(Protocol):
    """Protocol for session-scoped string storage.

    Implementations must not outlive the session that owns them: access
    tokens stored here are never meant to reach durable multi-session
    storage.
    """

    def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``. Removing an absent key is not an error."""
        ...


class InMemoryCredentialStore:
    """CredentialStore backed by a dict; lives as long as the process."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values
