from unittest.mock import AsyncMock

import httpx

from drivelink.auth.client.services.profile import ProfileService

USERINFO = "https://www.googleapis.com/oauth2/v2/userinfo"


class TestFetchUserEmail:
    def setup_method(self):
        # Arrange
        self.profile_service = ProfileService(USERINFO)
        self.profile_service._http_client = AsyncMock()

    async def test_returns_email_with_bearer_header(self):
        # Arrange
        self.profile_service._http_client.get.return_value = httpx.Response(
            200, json={"email": "user@example.com", "id": "1"}
        )

        # Act
        email = await self.profile_service.fetch_user_email("access-token-xyz")

        # Assert
        assert email == "user@example.com"
        call_args = self.profile_service._http_client.get.call_args
        assert call_args[0][0] == USERINFO
        assert call_args[1]["headers"] == {"Authorization": "Bearer access-token-xyz"}

    async def test_http_error_status_returns_none(self):
        # Arrange
        self.profile_service._http_client.get.return_value = httpx.Response(
            401, json={"error": {"code": 401}}
        )

        # Act & Assert
        assert await self.profile_service.fetch_user_email("token") is None

    async def test_network_error_returns_none(self):
        # Arrange
        self.profile_service._http_client.get.side_effect = httpx.ConnectError("down")

        # Act & Assert
        assert await self.profile_service.fetch_user_email("token") is None

    async def test_missing_email_returns_none(self):
        # Arrange
        self.profile_service._http_client.get.return_value = httpx.Response(
            200, json={"id": "1"}
        )

        # Act & Assert
        assert await self.profile_service.fetch_user_email("token") is None
