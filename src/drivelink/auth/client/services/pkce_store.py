"""Persistence of the PKCE parameters for the sign-in attempt in flight."""

from __future__ import annotations

import logging

from drivelink.auth.client.models.security import PKCEParameters
from drivelink.auth.client.primitives.pkce import sha256_base64url
from drivelink.auth.client.storage.base import CredentialStore, StorageKeys

logger = logging.getLogger(__name__)


class PKCEStore:
    """Keeps the code verifier and state between authorization and callback.

    Only the verifier and state are stored. The challenge is derived from
    the verifier again on retrieval.
    """

    def __init__(self, store: CredentialStore):
        self._store = store

    def store_params(self, params: PKCEParameters) -> None:
        self._store.set(StorageKeys.CODE_VERIFIER, params.code_verifier)
        self._store.set(StorageKeys.STATE, params.state)

    def retrieve_params(self) -> PKCEParameters | None:
        """Return the stored parameters, or None if any part is missing.

        Partial or malformed state is reported as absent, never partially
        trusted.
        """
        code_verifier = self._store.get(StorageKeys.CODE_VERIFIER)
        state = self._store.get(StorageKeys.STATE)

        if not code_verifier or not state:
            return None

        try:
            return PKCEParameters(
                code_verifier=code_verifier,
                code_challenge=sha256_base64url(code_verifier),
                state=state,
            )
        except ValueError as e:
            logger.warning(f"Ignoring malformed stored PKCE parameters: {e}")
            return None

    def clear_params(self) -> None:
        self._store.delete(StorageKeys.CODE_VERIFIER)
        self._store.delete(StorageKeys.STATE)
