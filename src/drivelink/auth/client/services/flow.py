"""Authorization flow service.

Starts a PKCE authorization attempt and validates the callback that ends it.
All validation here happens before any network call is made.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from drivelink.auth.client.models.config import DEFAULT_SCOPES, OAUTH2_AUTH_URL
from drivelink.auth.client.models.errors import (
    AuthorizationError,
    AuthorizationResponseError,
    MissingPKCEParametersError,
    StateValidationError,
)
from drivelink.auth.client.models.flow import AuthorizationRequest, AuthorizationResponse
from drivelink.auth.client.models.security import PKCEParameters
from drivelink.auth.client.primitives.pkce import PKCEManager
from drivelink.auth.client.services.pkce_store import PKCEStore
from drivelink.auth.client.services.security import validate_state

logger = logging.getLogger(__name__)


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    code_challenge: str,
    state: str,
    scopes: Sequence[str] = DEFAULT_SCOPES,
    authorization_endpoint: str = OAUTH2_AUTH_URL,
) -> str:
    """Build the provider's authorization URL for a PKCE sign-in."""
    return AuthorizationRequest(
        authorization_endpoint=authorization_endpoint,
        client_id=client_id,
        redirect_uri=redirect_uri,
        code_challenge=code_challenge,
        state=state,
        scopes=tuple(scopes),
    ).build_authorization_url()


class OAuth2FlowManager:
    """Owns the PKCE parameters of the sign-in attempt in flight.

    At most one attempt is live at a time: starting a new one discards the
    previous verifier and state, so a late callback from the old attempt
    fails state validation.
    """

    def __init__(self, pkce_store: PKCEStore, pkce_manager: PKCEManager | None = None):
        self._pkce_store = pkce_store
        self._pkce_manager = pkce_manager or PKCEManager()

    def start_authorization_flow(
        self,
        client_id: str,
        redirect_uri: str,
        scopes: Sequence[str] = DEFAULT_SCOPES,
        authorization_endpoint: str = OAUTH2_AUTH_URL,
    ) -> tuple[str, PKCEParameters]:
        """Generate and store fresh PKCE parameters and build the URL to visit.

        Returns:
            Tuple of (authorization_url, pkce_parameters)
        """
        if self._pkce_store.retrieve_params() is not None:
            logger.info("Discarding PKCE parameters from an earlier sign-in attempt")
        self._pkce_store.clear_params()

        pkce_params = self._pkce_manager.generate_parameters()
        self._pkce_store.store_params(pkce_params)

        authorization_url = build_authorization_url(
            client_id,
            redirect_uri,
            pkce_params.code_challenge,
            pkce_params.state,
            scopes,
            authorization_endpoint,
        )
        logger.info(f"Generated authorization URL for client {client_id}")
        return authorization_url, pkce_params

    def validate_callback(
        self, callback_url: str
    ) -> tuple[AuthorizationResponse, PKCEParameters]:
        """Parse a callback URL and match it against the stored attempt.

        Returns:
            Tuple of (authorization_response, pkce_parameters). The response
            is guaranteed to carry a code. The parameters are removed from
            the store before returning, so each attempt validates once.

        Raises:
            AuthorizationError: The provider reported an error
            AuthorizationResponseError: Code or state is missing
            MissingPKCEParametersError: No sign-in attempt is in flight
            StateValidationError: State mismatch; PKCE parameters are
                cleared before raising
        """
        auth_response = AuthorizationResponse.from_url(callback_url)

        if auth_response.is_error():
            logger.warning(
                f"Authorization callback contained error: {auth_response.error} - "
                f"{auth_response.error_description}"
            )
            message = f"OAuth error: {auth_response.error}"
            if auth_response.error_description:
                message += f" ({auth_response.error_description})"
            raise AuthorizationError(
                message,
                error=auth_response.error,
                error_description=auth_response.error_description,
            )

        if auth_response.code is None or auth_response.state is None:
            raise AuthorizationResponseError("Missing authorization code or state")

        pkce_params = self._pkce_store.retrieve_params()
        if pkce_params is None:
            raise MissingPKCEParametersError(
                "PKCE parameters not found. Please restart sign-in flow."
            )

        try:
            validate_state(pkce_params.state, auth_response.state)
        except StateValidationError:
            self._pkce_store.clear_params()
            logger.warning("Rejected authorization callback with mismatched state")
            raise

        # Consumed here so an overlapping callback for the same attempt fails
        self._pkce_store.clear_params()
        return auth_response, pkce_params

    def discard(self) -> None:
        """Drop the PKCE parameters of the current attempt."""
        self._pkce_store.clear_params()
