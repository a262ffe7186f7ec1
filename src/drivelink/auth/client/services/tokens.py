"""OAuth token exchange, refresh and revocation service.

Implements the RFC 6749 token endpoint interactions for a public client
using PKCE (RFC 7636), plus RFC 7009 token revocation.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from drivelink.auth.client.models.errors import (
    RevocationError,
    TokenError,
    TokenExchangeError,
    TokenRefreshError,
)
from drivelink.auth.client.models.tokens import (
    RefreshTokenRequest,
    RevocationRequest,
    TokenRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


class OAuth2TokenManager:
    """Manages token endpoint and revoke endpoint calls.

    Handles:
    - Authorization code to access token exchange (RFC 6749 Section 4.1.3)
    - Access token refresh (RFC 6749 Section 6)
    - Token revocation (RFC 7009)

    Uses application/x-www-form-urlencoded encoding for every request.
    Nothing is retried; retry policy belongs to the caller.
    """

    def __init__(self, timeout: float = 30.0):
        """Initialize OAuth token manager.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def exchange_code_for_token(
        self, token_request: TokenRequest
    ) -> TokenResponse:
        """Exchange authorization code for access token.

        Args:
            token_request: Token exchange request parameters

        Returns:
            TokenResponse: Parsed successful response

        Raises:
            TokenExchangeError: If the provider rejects the exchange or the
                request cannot be completed
        """
        logger.debug(f"Exchanging authorization code at {token_request.token_endpoint}")
        form_data = token_request.to_form_data()
        logger.debug(
            f"Token request: grant_type={form_data['grant_type']}, "
            f"client_id={form_data['client_id']}"
        )

        try:
            response = await self._http_client.post(
                token_request.token_endpoint,
                data=form_data,
                headers=FORM_HEADERS,
            )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"HTTP error during token exchange: {e}") from e

        token_response = self._parse_token_response(
            response, "Token exchange", TokenExchangeError
        )
        logger.info("Token exchange successful")
        return token_response

    async def refresh_access_token(
        self, refresh_request: RefreshTokenRequest
    ) -> TokenResponse:
        """Refresh an access token using a refresh token.

        Raises:
            TokenRefreshError: If the provider rejects the refresh or the
                request cannot be completed
        """
        logger.debug(f"Refreshing access token at {refresh_request.token_endpoint}")

        try:
            response = await self._http_client.post(
                refresh_request.token_endpoint,
                data=refresh_request.to_form_data(),
                headers=FORM_HEADERS,
            )
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"HTTP error during token refresh: {e}") from e

        token_response = self._parse_token_response(
            response, "Token refresh", TokenRefreshError
        )
        logger.info("Token refresh successful")
        return token_response

    async def revoke_token(self, revocation_request: RevocationRequest) -> None:
        """Revoke a token at the provider.

        Raises:
            RevocationError: On non-success status or transport failure
        """
        try:
            response = await self._http_client.post(
                revocation_request.revoke_endpoint,
                data=revocation_request.to_form_data(),
                headers=FORM_HEADERS,
            )
        except httpx.HTTPError as e:
            raise RevocationError(f"HTTP error during token revocation: {e}") from e

        if not _is_success(response):
            raise RevocationError(
                "Token revocation failed", status_code=response.status_code
            )
        logger.info("Token revoked")

    def _parse_token_response(
        self,
        response: httpx.Response,
        operation: str,
        error_cls: type[TokenError],
    ) -> TokenResponse:
        """Parse token endpoint response into TokenResponse.

        Error responses (RFC 6749 Section 5.2) become ``error_cls`` carrying
        the provider's ``error`` and ``error_description``.
        """
        try:
            response_data: Any = response.json()
        except ValueError:
            response_data = None

        if not _is_success(response):
            if not isinstance(response_data, dict):
                response_data = {}
            error_code = response_data.get("error", "unknown_error")
            error_description = response_data.get("error_description")

            logger.warning(
                f"{operation} failed with {response.status_code}: "
                f"{error_code} - {error_description or 'No description provided'}"
            )
            raise error_cls(
                f"{operation} failed: {error_description or error_code}",
                error=error_code,
                error_description=error_description,
                status_code=response.status_code,
            )

        if not isinstance(response_data, dict):
            raise error_cls(
                "Invalid token response format: expected a JSON object",
                status_code=response.status_code,
            )
        if "access_token" not in response_data:
            raise error_cls(
                "Token response missing required access_token",
                status_code=response.status_code,
            )

        try:
            return TokenResponse(**response_data)
        except ValidationError as e:
            raise error_cls(
                f"Invalid token response format: {e}",
                status_code=response.status_code,
            ) from e

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
