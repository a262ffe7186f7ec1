"""Security utilities for OAuth flows.

State parameter validation and redirect URI checks.
"""

from __future__ import annotations

import secrets
from urllib.parse import urlparse

from drivelink.auth.client.models.errors import StateValidationError

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


def validate_state(expected: str, actual: str) -> None:
    """Validate state parameter matches expected value exactly.

    Args:
        expected: State parameter stored when the sign-in attempt started
        actual: State parameter from callback URL

    Raises:
        StateValidationError: If state parameters don't match
    """
    if not secrets.compare_digest(expected.encode("utf-8"), actual.encode("utf-8")):
        raise StateValidationError("Invalid state parameter. Possible CSRF attack.")


def validate_redirect_uri(uri: str) -> bool:
    """Validate redirect URI is https, or plain http on a loopback host."""
    try:
        parsed = urlparse(uri)
        return parsed.scheme == "https" or (
            parsed.scheme == "http" and parsed.hostname in LOOPBACK_HOSTS
        )
    except ValueError:
        return False


def origin_of(url: str) -> str:
    """Return the ``scheme://host[:port]`` origin of a URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower()
