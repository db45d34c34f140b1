"""PKCE verifier/challenge generation (:rfc:`7636`, S256 method)."""

from __future__ import annotations

import base64
import hashlib
import secrets

from claude_sdk_auth.models import PKCESession

VERIFIER_BYTES = 32
STATE_BYTES = 16


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_pkce() -> PKCESession:
    """Generate a fresh PKCE code_verifier and code_challenge.

    The verifier is 32 random bytes from :mod:`secrets`, URL-safe base64
    encoded without padding (43 characters). The challenge is the same
    encoding of ``SHA-256(verifier)``.

    Returns:
        A new :class:`~claude_sdk_auth.models.PKCESession`. Never reused.
    """
    verifier = _b64url(secrets.token_bytes(VERIFIER_BYTES))
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return PKCESession(verifier=verifier, challenge=_b64url(digest))


def generate_state() -> str:
    """Return a fresh 128-bit hex ``state`` value for the authorize request."""
    return secrets.token_hex(STATE_BYTES)
