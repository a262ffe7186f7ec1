"""Authenticated HTTP access to the storage API.

Attaches the session's access token as a Bearer credential, and only ever
to the API hosts declared in the client configuration.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from drivelink.auth.client.models.errors import (
    DriveAPIError,
    NotAuthenticatedError,
    UntrustedHostError,
)
from drivelink.auth.client.oauth_client import DriveAuthClient

logger = logging.getLogger(__name__)


class AuthorizedHTTPClient:
    """Sends requests to the storage API on behalf of the signed-in user."""

    def __init__(self, auth_client: DriveAuthClient):
        self._auth = auth_client
        self.api_base = auth_client.config.api_base.rstrip("/")
        self.upload_base = auth_client.config.upload_base.rstrip("/")
        self.allowed_hosts = frozenset(
            urlparse(base).hostname for base in (self.api_base, self.upload_base)
        )
        self._http_client = httpx.AsyncClient(timeout=auth_client.config.http_timeout)

    def resolve_url(self, endpoint: str) -> str:
        """Resolve ``endpoint`` against ``api_base`` and check its host.

        Raises:
            UntrustedHostError: If an absolute URL points at another host
        """
        if not endpoint.startswith(("http://", "https://")):
            return f"{self.api_base}{endpoint}"

        parsed = urlparse(endpoint)
        if parsed.scheme != "https" or parsed.hostname not in self.allowed_hosts:
            raise UntrustedHostError(
                f"Refusing to send access token to {parsed.scheme}://{parsed.hostname}"
            )
        return endpoint

    async def request(
        self, method: str, endpoint: str, **kwargs: Any
    ) -> httpx.Response:
        """Send an authenticated request.

        Raises:
            UntrustedHostError: Endpoint host is not a declared API host
            NotAuthenticatedError: No usable access token
            DriveAPIError: The API answered with a non-success status
        """
        url = self.resolve_url(endpoint)

        access_token = await self._auth.get_access_token()
        if not access_token:
            raise NotAuthenticatedError("Not authenticated. Please sign in first.")

        headers = {**kwargs.pop("headers", {}), "Authorization": f"Bearer {access_token}"}
        logger.debug(f"{method} {url}")
        response = await self._http_client.request(method, url, headers=headers, **kwargs)

        if not 200 <= response.status_code < 300:
            raise self._api_error(response)
        return response

    def _api_error(self, response: httpx.Response) -> DriveAPIError:
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            error = {}
        if not isinstance(error, dict):
            error = {"message": str(error)}

        message = error.get("message") or f"HTTP {response.status_code}"
        logger.warning(f"Drive API error {response.status_code}: {message}")
        return DriveAPIError(
            message, code=error.get("code", response.status_code), status=error.get("status")
        )

    async def get_json(self, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        response = await self.request("GET", endpoint, **kwargs)
        return response.json()

    async def post_json(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.request("POST", endpoint, json=payload)
        return response.json()

    async def close(self) -> None:
        await self._http_client.aclose()
