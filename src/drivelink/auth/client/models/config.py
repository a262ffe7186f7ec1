"""Client configuration for the browser-style OAuth flow and the Drive API."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from drivelink.auth.client.models.errors import ClientNotInitializedError
from drivelink.auth.client.services.security import validate_redirect_uri

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/drive.file",  # Files created by the app
    "https://www.googleapis.com/auth/userinfo.email",
]

OAUTH2_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
OAUTH2_TOKEN_URL = "https://oauth2.googleapis.com/token"
OAUTH2_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
OAUTH2_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"


class AuthConfig(BaseModel):
    """Configuration for DriveAuthClient and the Drive API clients.

    The client id of a PKCE public client is not a secret.
    """

    client_id: str = Field(min_length=1)
    redirect_uri: str = "http://localhost:8080/callback"
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    root_folder_id: str | None = None

    authorization_endpoint: str = OAUTH2_AUTH_URL
    token_endpoint: str = OAUTH2_TOKEN_URL
    revoke_endpoint: str = OAUTH2_REVOKE_URL
    userinfo_endpoint: str = OAUTH2_USERINFO_URL
    api_base: str = DRIVE_API_BASE
    upload_base: str = DRIVE_UPLOAD_BASE

    http_timeout: float = Field(default=30.0, gt=0)
    popup_timeout: float = Field(default=300.0, gt=0)
    popup_poll_interval: float = Field(default=0.5, gt=0)
    expiry_buffer_seconds: int = Field(default=300, ge=0)

    @field_validator("redirect_uri")
    @classmethod
    def check_redirect_uri(cls, v: str) -> str:
        if not validate_redirect_uri(v):
            raise ValueError(
                "redirect_uri must use https, or http on a loopback host"
            )
        return v

    @classmethod
    def from_env(cls, prefix: str = "DRIVELINK_") -> AuthConfig:
        """Build a config from environment variables (and a ``.env`` file).

        Raises:
            ClientNotInitializedError: If ``<prefix>CLIENT_ID`` is not set
        """
        load_dotenv()

        client_id = os.getenv(f"{prefix}CLIENT_ID")
        if not client_id:
            raise ClientNotInitializedError(
                f"{prefix}CLIENT_ID is not set; configure an OAuth client id first"
            )

        values: dict[str, object] = {"client_id": client_id}
        if redirect_uri := os.getenv(f"{prefix}REDIRECT_URI"):
            values["redirect_uri"] = redirect_uri
        if scopes := os.getenv(f"{prefix}SCOPES"):
            values["scopes"] = scopes.split()
        if root_folder_id := os.getenv(f"{prefix}ROOT_FOLDER_ID"):
            values["root_folder_id"] = root_folder_id
        if popup_timeout := os.getenv(f"{prefix}POPUP_TIMEOUT"):
            values["popup_timeout"] = float(popup_timeout)

        return cls(**values)
