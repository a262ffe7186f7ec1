"""PKCE (Proof Key for Code Exchange) primitives.

Implements RFC 7636 parameter generation: a random code verifier, its S256
code challenge, and a random state nonce for CSRF protection.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from drivelink.auth.client.models.errors import PKCEError
from drivelink.auth.client.models.security import PKCEParameters

# RFC 7636 Section 4.1 unreserved characters
UNRESERVED_ALPHABET = string.ascii_letters + string.digits + "-._~"

CODE_VERIFIER_LENGTH = 128
STATE_LENGTH = 32


def generate_random_string(length: int) -> str:
    """Generate a random string drawn uniformly from the unreserved alphabet.

    Uses the ``secrets`` CSPRNG. The result backs both the code verifier and
    the state nonce, so it must never come from ``random``.

    Args:
        length: Exact number of characters to produce

    Returns:
        A string of exactly ``length`` unreserved characters
    """
    if length < 0:
        raise ValueError("length must be non-negative")
    return "".join(secrets.choice(UNRESERVED_ALPHABET) for _ in range(length))


def sha256_base64url(value: str) -> str:
    """Hash ``value`` with SHA-256 and encode the digest as unpadded base64url.

    RFC 7636 Section 4.2: BASE64URL-ENCODE(SHA256(ASCII(code_verifier))).
    Non-ASCII input is hashed as UTF-8.
    """
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class PKCEManager:
    """Generates fresh PKCE parameters for each authorization attempt.

    Every call returns an independent triple; nothing is cached, so a
    verifier or state from an earlier attempt can never be reused.
    """

    def generate_parameters(self) -> PKCEParameters:
        """Generate new PKCE parameters for an authorization flow.

        Returns:
            PKCEParameters: 128-char verifier, its S256 challenge, 32-char state

        Raises:
            PKCEError: If parameter generation fails
        """
        try:
            code_verifier = generate_random_string(CODE_VERIFIER_LENGTH)
            return PKCEParameters(
                code_verifier=code_verifier,
                code_challenge=sha256_base64url(code_verifier),
                state=generate_random_string(STATE_LENGTH),
            )
        except Exception as e:
            raise PKCEError(f"Failed to generate PKCE parameters: {e}") from e
