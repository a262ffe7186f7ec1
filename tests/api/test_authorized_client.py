"""Tests for the Bearer-authenticated API client."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from drivelink.api.client import AuthorizedHTTPClient
from drivelink.auth.client.models.config import DRIVE_API_BASE, AuthConfig
from drivelink.auth.client.models.errors import (
    DriveAPIError,
    NotAuthenticatedError,
    UntrustedHostError,
)


class TestAuthorizedHTTPClient:
    def setup_method(self):
        # Arrange
        self.auth_client = MagicMock()
        self.auth_client.config = AuthConfig(client_id="client-456")
        self.auth_client.get_access_token = AsyncMock(return_value="access-token-xyz")
        self.http = AuthorizedHTTPClient(self.auth_client)
        self.http._http_client = AsyncMock()

    async def test_relative_endpoint_gets_bearer_token(self):
        # Arrange
        self.http._http_client.request.return_value = httpx.Response(
            200, json={"id": "file-1"}
        )

        # Act
        data = await self.http.get_json("/files/file-1", params={"fields": "id"})

        # Assert
        assert data == {"id": "file-1"}
        call_args = self.http._http_client.request.call_args
        assert call_args[0] == ("GET", f"{DRIVE_API_BASE}/files/file-1")
        assert call_args[1]["headers"] == {"Authorization": "Bearer access-token-xyz"}
        assert call_args[1]["params"] == {"fields": "id"}

    async def test_caller_headers_are_kept(self):
        # Arrange
        self.http._http_client.request.return_value = httpx.Response(200)

        # Act
        await self.http.request(
            "POST",
            "https://www.googleapis.com/upload/drive/v3/files",
            headers={"Content-Type": "multipart/related; boundary=x"},
        )

        # Assert
        headers = self.http._http_client.request.call_args[1]["headers"]
        assert headers == {
            "Content-Type": "multipart/related; boundary=x",
            "Authorization": "Bearer access-token-xyz",
        }

    @pytest.mark.parametrize(
        "endpoint",
        [
            "https://evil.example.com/files",
            "http://www.googleapis.com/drive/v3/files",
            "https://www.googleapis.com.evil.example.com/files",
        ],
    )
    async def test_untrusted_hosts_never_see_the_token(self, endpoint):
        # Act & Assert
        with pytest.raises(UntrustedHostError):
            await self.http.request("GET", endpoint)

        self.auth_client.get_access_token.assert_not_awaited()
        self.http._http_client.request.assert_not_awaited()

    async def test_requires_sign_in(self):
        # Arrange
        self.auth_client.get_access_token.return_value = None

        # Act & Assert
        with pytest.raises(NotAuthenticatedError, match="sign in"):
            await self.http.request("GET", "/about")

        self.http._http_client.request.assert_not_awaited()

    async def test_api_error_response(self):
        # Arrange
        self.http._http_client.request.return_value = httpx.Response(
            404,
            json={
                "error": {
                    "code": 404,
                    "message": "File not found: file-1.",
                    "status": "NOT_FOUND",
                }
            },
        )

        # Act & Assert
        with pytest.raises(DriveAPIError) as exc_info:
            await self.http.request("GET", "/files/file-1")

        assert str(exc_info.value) == "File not found: file-1."
        assert exc_info.value.code == 404
        assert exc_info.value.status == "NOT_FOUND"

    async def test_api_error_without_json_body(self):
        # Arrange
        self.http._http_client.request.return_value = httpx.Response(
            503, text="Service Unavailable"
        )

        # Act & Assert
        with pytest.raises(DriveAPIError, match="HTTP 503") as exc_info:
            await self.http.request("GET", "/about")

        assert exc_info.value.code == 503
