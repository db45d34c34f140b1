"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~claude_sdk_auth.exceptions.ClaudeAuthError` subclass.
Shell wrappers can inspect the exit code to tell "need to log in" apart from
"transient network error" without parsing stderr.

Example::

    $ claude-sdk-auth token
    $ echo $?
    3   # EXIT_NOT_AUTHENTICATED -- run `claude-sdk-auth login`
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments, or a login flow was reused."""

EXIT_NOT_AUTHENTICATED = 3
"""No usable credential is stored."""

EXIT_TOKEN_EXPIRED = 4
"""The stored token is stale and automatic refresh is disabled."""

EXIT_EXCHANGE_FAILED = 5
"""The token endpoint rejected an exchange or refresh, or could not be reached."""

EXIT_CONFLICT = 6
"""A write would have replaced live credentials without permission."""
