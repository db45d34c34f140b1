"""claude_sdk_auth -- OAuth credential lifecycle for Claude SDK clients.

This package runs the OAuth 2.0 authorization-code flow with PKCE against
Anthropic, stores the resulting token pair in a JSON file shared with the
Claude CLI, and hands out access tokens that are refreshed automatically,
with at most one refresh in flight per credentials file.

Typical usage::

    from claude_sdk_auth import ensure_authenticated

    auth = await ensure_authenticated()
    token = await auth.get_token()

Modules:
    auth: Login flow, token client, credential store and manager.
    models: Pydantic models shared across the package.
    config: Path resolution, option precedence and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting with Rich support.
    app: The ``claude-sdk-auth`` command-line interface.
"""

__version__ = "0.1.0"

from claude_sdk_auth.auth import (  # noqa: E402
    Auth,
    LoginFlow,
    ensure_authenticated,
    quick_auth,
    setup_auth,
)
from claude_sdk_auth.exceptions import (  # noqa: E402
    ClaudeAuthError,
    ConflictError,
    ExchangeFailedError,
    LoginFlowConsumedError,
    NotAuthenticatedError,
    TokenExpiredError,
)
from claude_sdk_auth.models import AuthOptions, Credential, LoginMode, StorageMode, TokenState  # noqa: E402

__all__ = [
    "Auth",
    "AuthOptions",
    "ClaudeAuthError",
    "ConflictError",
    "Credential",
    "ExchangeFailedError",
    "LoginFlow",
    "LoginFlowConsumedError",
    "LoginMode",
    "NotAuthenticatedError",
    "StorageMode",
    "TokenExpiredError",
    "TokenState",
    "ensure_authenticated",
    "quick_auth",
    "setup_auth",
]
