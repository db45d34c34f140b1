"""OAuth 2.0 PKCE login, token refresh and credential storage.

The main entry points are:

- :class:`Auth` -- owns one credentials file; returns valid access tokens,
  refreshing them with per-path coalescing, and runs login/logout.
- :class:`LoginFlow` -- a single login attempt returned by :meth:`Auth.login`.
- :func:`ensure_authenticated`, :func:`setup_auth`, :func:`quick_auth` --
  interactive helpers built on :class:`Auth`.
- :class:`CredentialStore` and :class:`TokenClient` -- the disk and network
  halves :class:`Auth` composes.

Typical usage::

    from claude_sdk_auth.auth import ensure_authenticated

    auth = await ensure_authenticated()
    token = await auth.get_token()
"""

from claude_sdk_auth.auth.authorize import build_authorize_url
from claude_sdk_auth.auth.credential_store import CredentialStore
from claude_sdk_auth.auth.interactive import ensure_authenticated, quick_auth, setup_auth
from claude_sdk_auth.auth.manager import BUFFER_WINDOW_MS, Auth, LoginFlow, token_state
from claude_sdk_auth.auth.pkce import generate_pkce, generate_state
from claude_sdk_auth.auth.token_client import TokenClient

__all__ = [
    "Auth",
    "BUFFER_WINDOW_MS",
    "CredentialStore",
    "LoginFlow",
    "TokenClient",
    "build_authorize_url",
    "ensure_authenticated",
    "generate_pkce",
    "generate_state",
    "quick_auth",
    "setup_auth",
    "token_state",
]
