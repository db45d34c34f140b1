"""Authorization URL construction."""

from __future__ import annotations

from typing import Optional, Union
from urllib.parse import urlencode

from claude_sdk_auth.models import LoginMode, ProviderConfig


def build_authorize_url(
    mode: Union[LoginMode, str],
    challenge: str,
    state: str,
    provider: Optional[ProviderConfig] = None,
) -> str:
    """Build the URL the user opens to grant access.

    *mode* selects the authorize endpoint (``max`` for claude.ai, ``console``
    for the developer console); the query is the same for both.

    Args:
        mode: A :class:`~claude_sdk_auth.models.LoginMode` or its string value.
        challenge: PKCE S256 code challenge.
        state: Opaque value echoed back by the provider.
        provider: Endpoint configuration. Defaults to
            :class:`~claude_sdk_auth.models.ProviderConfig`.

    Returns:
        The absolute authorization URL.

    Raises:
        ValueError: If *mode* is not a known login mode.
    """
    provider = provider or ProviderConfig()
    try:
        login_mode = LoginMode(mode)
    except ValueError:
        allowed = ", ".join(m.value for m in LoginMode)
        raise ValueError(f"Unknown login mode {mode!r} (expected one of: {allowed})") from None

    base_url = provider.authorize_urls.get(login_mode)
    if base_url is None:
        raise ValueError(f"No authorize endpoint configured for mode {login_mode.value!r}")

    params: dict[str, str] = {
        "code": "true",
        "response_type": "code",
        "client_id": provider.client_id,
        "redirect_uri": provider.redirect_uri,
        "scope": " ".join(provider.scopes),
        "code_challenge": challenge,
        "code_challenge_method": "S256",
        "state": state,
    }
    return f"{base_url}?{urlencode(params)}"
