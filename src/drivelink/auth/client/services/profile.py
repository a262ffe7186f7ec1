"""Best-effort lookup of the signed-in user's profile."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class ProfileService:
    """Fetches the signed-in user's email from the userinfo endpoint."""

    def __init__(self, userinfo_endpoint: str, timeout: float = 30.0):
        self.userinfo_endpoint = userinfo_endpoint
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def fetch_user_email(self, access_token: str) -> str | None:
        """Return the user's email, or None if it cannot be fetched.

        Failures are logged and never raised: a missing email must not fail
        an otherwise successful sign-in.
        """
        try:
            response = await self._http_client.get(
                self.userinfo_endpoint,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            if not 200 <= response.status_code < 300:
                logger.warning(
                    f"Failed to fetch user email: HTTP {response.status_code}"
                )
                return None

            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch user email: {e}")
            return None

        email = data.get("email") if isinstance(data, dict) else None
        return email or None

    async def close(self) -> None:
        await self._http_client.aclose()
