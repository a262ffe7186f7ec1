"""Token request and response models.

Requests are immutable dataclasses that render themselves as form data;
responses are validated with pydantic.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange request (RFC 6749 Section 4.1.3).

    Public clients send no secret: the PKCE ``code_verifier`` is the proof
    that the same client started the flow (RFC 7636).
    """

    token_endpoint: str
    code: str
    redirect_uri: str
    client_id: str
    code_verifier: str

    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).
        """
        return {
            "code": self.code,
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "grant_type": self.grant_type,
            "code_verifier": self.code_verifier,
        }


@dataclass(frozen=True)
class RefreshTokenRequest:
    """Refresh token request parameters (RFC 6749 Section 6)."""

    token_endpoint: str
    refresh_token: str
    client_id: str

    grant_type: str = "refresh_token"

    def to_form_data(self) -> dict[str, str]:
        return {
            "refresh_token": self.refresh_token,
            "client_id": self.client_id,
            "grant_type": self.grant_type,
        }


@dataclass(frozen=True)
class RevocationRequest:
    """Token revocation request (RFC 7009)."""

    revoke_endpoint: str
    token: str

    def to_form_data(self) -> dict[str, str]:
        return {"token": self.token}


class TokenResponse(BaseModel):
    """Successful token endpoint response (RFC 6749 Section 5.1).

    ``refresh_token`` is only present when the user went through the
    consent screen.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_token: str | None = None
    scope: str = ""

    @property
    def granted_scopes(self) -> list[str]:
        return self.scope.split()
