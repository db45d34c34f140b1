"""Interactive login helpers for scripts and collaborators.

These wrap :class:`~claude_sdk_auth.auth.manager.Auth` for the common case
of "make sure I can call the API": check the stored token, and if it is not
valid, show the authorization URL and read the code the user pastes back.

Presentation and input are injectable so applications can route them
through their own UI; the defaults use :mod:`claude_sdk_auth.output` and
:func:`typer.prompt`.
"""

from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Callable, Optional, Union

import typer

from claude_sdk_auth import output
from claude_sdk_auth.auth.manager import Auth, LoginFlow
from claude_sdk_auth.models import AuthOptions, LoginMode, TokenState

Prompt = Callable[[str], Awaitable[str]]
Presenter = Callable[[LoginFlow], None]

PathOrOptions = Union[AuthOptions, str, os.PathLike, None]

QUICK_AUTH_PATH = "./.auth.json"


def present_login(flow: LoginFlow) -> None:
    """Print login instructions for *flow* to stderr."""
    output.info("To authenticate with Claude:")
    output.info("  1. Open this URL in your browser:")
    output.link(flow.url or "")
    output.info("  2. Sign in and authorize the application")
    output.info("  3. Copy the authorization code shown on the page")


async def prompt_for_code(message: str = "Paste the authorization code") -> str:
    """Read the authorization code from the terminal without blocking the loop."""
    return await asyncio.to_thread(typer.prompt, message)


async def ensure_authenticated(
    path_or_options: PathOrOptions = None,
    *,
    mode: Union[LoginMode, str] = LoginMode.MAX,
    prompt: Optional[Prompt] = None,
    presenter: Optional[Presenter] = None,
) -> Auth:
    """Return an :class:`Auth` whose stored token is valid, logging in if needed.

    If the stored token is missing or stale, runs the full flow: start a
    login, present the URL, collect the code, complete the exchange.

    Args:
        path_or_options: Credentials path or :class:`AuthOptions`.
        mode: Login mode used if a login is needed.
        prompt: Async callable returning the pasted code. Defaults to
            :func:`prompt_for_code`.
        presenter: Callable that shows the flow to the user. Defaults to
            :func:`present_login`.

    Raises:
        ExchangeFailedError: If the provider rejects the pasted code.
    """
    auth = Auth(path_or_options)
    state = await auth.state()
    if state is TokenState.VALID:
        return auth
    output.debug(f"Token at {auth.credentials_path} is {state.value}; starting login")

    # Stale credentials are replaced; only live ones make login() a no-op.
    flow = await auth.login(mode)
    if flow.already_authenticated:
        return auth

    (presenter or present_login)(flow)
    code = await (prompt or prompt_for_code)("Paste the authorization code")
    await flow.complete(code)
    output.success(f"Authenticated. Credentials saved to {auth.credentials_path}")
    return auth


async def setup_auth(
    path_or_options: PathOrOptions = None,
    *,
    mode: Union[LoginMode, str] = LoginMode.MAX,
) -> LoginFlow:
    """Start a login for callers that present the URL and collect the code themselves.

    Returns a no-op flow (``url is None``) when already authenticated.

    Example::

        flow = await setup_auth("./.auth.json")
        if flow.url:
            send_to_user(flow.url)
            await flow.complete(await receive_code())
    """
    return await Auth(path_or_options).login(mode)


async def quick_auth(
    storage: Union[str, os.PathLike] = QUICK_AUTH_PATH,
    *,
    mode: Union[LoginMode, str] = LoginMode.MAX,
    prompt: Optional[Prompt] = None,
    presenter: Optional[Presenter] = None,
) -> Auth:
    """Shorthand for :func:`ensure_authenticated` against a private file."""
    return await ensure_authenticated(
        storage, mode=mode, prompt=prompt, presenter=presenter
    )
