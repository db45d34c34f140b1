"""Credential commands -- log in, inspect, refresh and remove credentials.

Each command builds an :class:`~claude_sdk_auth.auth.manager.Auth` for the
``--path`` option (or the ``CLAUDE_SDK_AUTH_CREDENTIALS_PATH`` override, or
the shared default file) and runs one async operation on it.

Typical workflow::

    claude-sdk-auth login               # interactive PKCE login
    claude-sdk-auth status              # show token state and expiry
    export TOKEN=$(claude-sdk-auth token)
    claude-sdk-auth logout --force
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Optional, TypeVar

import typer

from claude_sdk_auth.auth.interactive import present_login, prompt_for_code
from claude_sdk_auth.auth.manager import Auth
from claude_sdk_auth.exceptions import ClaudeAuthError
from claude_sdk_auth.models import AuthOptions, LoginMode, TokenState
from claude_sdk_auth.output import (
    debug,
    error,
    get_output,
    info,
    print_data,
    success,
    suggest,
    warning,
)

T = TypeVar("T")

PathOption = typer.Option(
    None,
    "--path",
    "-p",
    help="Credentials file (default: $CLAUDE_SDK_AUTH_CREDENTIALS_PATH or ~/.claude/.credentials.json).",
)

_STATE_LABELS = {
    TokenState.NO_CREDENTIAL: "not logged in",
    TokenState.VALID: "valid",
    TokenState.EXPIRING_SOON: "expiring soon",
    TokenState.EXPIRED: "expired",
}


def _auth(path: Optional[str], **overrides: object) -> Auth:
    try:
        auth = Auth(AuthOptions(credentials_path=path, **overrides))
    except ClaudeAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    debug(f"Credentials file: {auth.credentials_path} ({auth.store.storage_mode.value})")
    return auth


def _run(awaitable: Awaitable[T]) -> T:
    """Run *awaitable* and turn library errors into a clean exit."""
    try:
        return asyncio.run(awaitable)
    except ClaudeAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _format_expiry(expires_at: int) -> str:
    try:
        moment = datetime.fromtimestamp(expires_at / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        # Outside the platform's datetime range; show the raw timestamp.
        return f"{expires_at} ms"
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def login_command(
    path: Optional[str] = PathOption,
    mode: LoginMode = typer.Option(
        LoginMode.MAX, "--mode", "-m", help="Authorize against claude.ai (max) or the console."
    ),
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Replace credentials that are still valid."
    ),
) -> None:
    """Log in with the OAuth authorization-code flow.

    Prints the authorization URL, waits for the code shown after
    authorizing, and stores the resulting tokens.

    Example::

        claude-sdk-auth login --mode console
    """

    async def _login() -> Optional[Auth]:
        auth = _auth(path, overwrite_existing=overwrite)
        flow = await auth.login(mode)
        if flow.already_authenticated:
            return None
        present_login(flow)
        code = await prompt_for_code()
        await flow.complete(code)
        return auth

    auth = _run(_login())
    if auth is None:
        info("Already authenticated.")
        suggest("Use --overwrite to log in again.")
        return
    success(f"Logged in. Credentials saved to {auth.credentials_path}")


def status_command(path: Optional[str] = PathOption) -> None:
    """Show where credentials live and whether the token is usable."""

    async def _status() -> tuple[Auth, TokenState, Optional[int]]:
        auth = _auth(path)
        credential = await auth.credential()
        state = await auth.state()
        return auth, state, (credential.expires_at if credential else None)

    auth, state, expires_at = _run(_status())
    rows = [
        ["Path", str(auth.credentials_path)],
        ["Storage", auth.store.storage_mode.value],
        ["State", _STATE_LABELS[state]],
        ["Expires", _format_expiry(expires_at) if expires_at is not None else "-"],
    ]
    get_output().print_table(["Field", "Value"], rows, title="Claude Credentials")
    if state is TokenState.NO_CREDENTIAL:
        suggest("Log in: claude-sdk-auth login")
    elif state is TokenState.EXPIRED:
        warning("The access token has expired.")
        suggest("Refresh it: claude-sdk-auth refresh")


def token_command(
    path: Optional[str] = PathOption,
    no_refresh: bool = typer.Option(
        False, "--no-refresh", help="Fail instead of refreshing a stale token."
    ),
) -> None:
    """Print a valid access token to stdout.

    Example::

        curl -H "Authorization: Bearer $(claude-sdk-auth token)" ...
    """
    overrides = {"auto_refresh": False} if no_refresh else {}
    token = _run(_auth(path, **overrides).get_token())
    print_data(token)


def refresh_command(path: Optional[str] = PathOption) -> None:
    """Refresh the access token now."""
    credential = _run(_auth(path).refresh())
    success(f"Token refreshed. Expires {_format_expiry(credential.expires_at)}")


def logout_command(
    path: Optional[str] = PathOption,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove stored credentials."""
    auth = _auth(path)
    if not auth.credentials_path.exists():
        info(f"No stored credentials at {auth.credentials_path}.")
        return
    if not force:
        confirmed = typer.confirm(f"Remove credentials at {auth.credentials_path}?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()
    _run(auth.logout())
    if auth.credentials_path.exists():
        success(f"Removed credentials from {auth.credentials_path}; other settings were kept")
    else:
        success(f"Removed {auth.credentials_path}")


def path_command(path: Optional[str] = PathOption) -> None:
    """Print the resolved credentials path."""
    auth = _auth(path)
    print_data(str(auth.credentials_path))
