"""Exception hierarchy for OAuth 2.0 PKCE authentication errors.

Provides specific exception types for different failure modes to enable
precise error handling and recovery strategies.
"""

from __future__ import annotations


class OAuth2Error(Exception):
    """Base exception for all OAuth related errors."""

    pass


class ConfigurationError(OAuth2Error):
    """Raised when the client cannot proceed until the caller fixes its setup."""

    pass


class PopupBlockedError(ConfigurationError):
    """Raised when the sign-in popup could not be opened."""

    pass


class ClientNotInitializedError(ConfigurationError):
    """Raised when no client id has been configured."""

    pass


class UntrustedHostError(ConfigurationError):
    """Raised when a bearer token would be sent to an undeclared host."""

    pass


class AuthorizationError(OAuth2Error):
    """Raised when user authorization fails.

    Carries the ``error`` and ``error_description`` parameters the
    authorization server put on the callback URL, when there were any.
    """

    def __init__(
        self,
        message: str,
        error: str | None = None,
        error_description: str | None = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description


class UserAuthCancelledError(AuthorizationError):
    """Raised when the user closes the sign-in popup before finishing."""

    pass


class AuthTimeoutError(AuthorizationError):
    """Raised when the sign-in popup does not complete in time."""

    pass


class AuthorizationResponseError(OAuth2Error):
    """Raised when authorization response is malformed or invalid."""

    pass


class StateValidationError(AuthorizationResponseError):
    """Raised when OAuth state parameter validation fails.

    A state mismatch means the callback does not belong to the sign-in
    attempt we started, which could indicate a CSRF attack.
    """

    pass


class PKCEError(OAuth2Error):
    """Raised when PKCE parameter generation or validation fails."""

    pass


class MissingPKCEParametersError(PKCEError):
    """Raised when a callback arrives and no PKCE parameters are stored."""

    pass


class TokenError(OAuth2Error):
    """Raised when token operations fail."""

    def __init__(
        self,
        message: str,
        error: str | None = None,
        error_description: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.status_code = status_code


class TokenExchangeError(TokenError):
    """Raised when authorization code to token exchange fails."""

    pass


class TokenRefreshError(TokenError):
    """Raised when token refresh fails."""

    pass


class RevocationError(TokenError):
    """Raised when the revoke endpoint rejects a token or is unreachable."""

    pass


class NotAuthenticatedError(OAuth2Error):
    """Raised when an API call is made without a usable access token."""

    pass


class DriveAPIError(Exception):
    """Raised when the storage API answers with a non-success status."""

    def __init__(self, message: str, code: int, status: str | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
