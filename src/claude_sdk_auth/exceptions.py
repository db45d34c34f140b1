"""Exception hierarchy for claude_sdk_auth.

All exceptions inherit from :class:`ClaudeAuthError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`claude_sdk_auth.exit_codes`. The CLI entry point in
:func:`claude_sdk_auth.app.main` catches ``ClaudeAuthError`` and exits with
the appropriate code.

Subclass hierarchy::

    ClaudeAuthError (exit 1)
    +-- NotAuthenticatedError      (exit 3)
    +-- TokenExpiredError          (exit 4)
    +-- ExchangeFailedError        (exit 5)
    +-- ConflictError              (exit 6)
    +-- LoginFlowConsumedError     (exit 2)
    +-- CredentialValidationError  (exit 1)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import Optional

from claude_sdk_auth.exit_codes import (
    EXIT_CONFLICT,
    EXIT_EXCHANGE_FAILED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_AUTHENTICATED,
    EXIT_TOKEN_EXPIRED,
)


class ClaudeAuthError(Exception):
    """Base exception for all claude_sdk_auth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`claude_sdk_auth.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class NotAuthenticatedError(ClaudeAuthError):
    """Raised when no usable credential is stored. Recover by running a login flow."""

    exit_code = EXIT_NOT_AUTHENTICATED


class TokenExpiredError(ClaudeAuthError):
    """Raised when the stored token is past or near expiry and auto-refresh is disabled."""

    exit_code = EXIT_TOKEN_EXPIRED


class ExchangeFailedError(ClaudeAuthError):
    """Raised when the token endpoint rejects a code or refresh-token exchange.

    Also covers network-level failures while talking to the endpoint. Never
    retried automatically: a consumed authorization code or a revoked
    refresh token cannot succeed on a second attempt.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the response, or ``None`` when no
            response was received.
        body: Raw response body for diagnostics, or ``None``.
    """

    exit_code = EXIT_EXCHANGE_FAILED

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConflictError(ClaudeAuthError):
    """Raised when a write would overwrite live credentials without permission.

    Args:
        message: Human-readable error description.
        path: The credentials file that was protected.
    """

    exit_code = EXIT_CONFLICT

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class LoginFlowConsumedError(ClaudeAuthError):
    """Raised when ``complete()`` is called on a login flow that already ran."""

    exit_code = EXIT_INVALID_USAGE


class CredentialValidationError(ClaudeAuthError):
    """Raised for a malformed credential document.

    The credential store downgrades this to "no credential"; it only
    surfaces from :func:`~claude_sdk_auth.models.validate_credential`.
    """

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(ClaudeAuthError):
    """Raised for configuration problems (bad environment values, unknown modes)."""

    exit_code = EXIT_GENERIC_FAILURE
