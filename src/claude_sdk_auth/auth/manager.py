"""Credential manager: token state, refresh, login and logout.

:class:`Auth` is the sole mutator of stored credentials. It composes a
:class:`~claude_sdk_auth.auth.credential_store.CredentialStore` (disk) and a
:class:`~claude_sdk_auth.auth.token_client.TokenClient` (network) and never
touches either resource directly.

Token state is derived from ``expiresAt`` and the clock on every call::

    expires_at <= now                   -> EXPIRED
    now < expires_at <= now + buffer    -> EXPIRING_SOON
    expires_at > now + buffer           -> VALID

Refreshes are coalesced per resolved credentials path through
:func:`~claude_sdk_auth.auth.single_flight.run_once`, so any number of
concurrent :meth:`Auth.get_token` calls produce at most one network refresh.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from claude_sdk_auth.auth.authorize import build_authorize_url
from claude_sdk_auth.auth.credential_store import CredentialStore
from claude_sdk_auth.auth.pkce import generate_pkce, generate_state
from claude_sdk_auth.auth.single_flight import run_once
from claude_sdk_auth.auth.token_client import TokenClient
from claude_sdk_auth.clock import Clock, now_ms
from claude_sdk_auth.config import load_provider_config, resolve_options
from claude_sdk_auth.exceptions import (
    ConflictError,
    LoginFlowConsumedError,
    NotAuthenticatedError,
    TokenExpiredError,
)
from claude_sdk_auth.models import (
    AuthOptions,
    Credential,
    LoginMode,
    PKCESession,
    ProviderConfig,
    TokenState,
)

logger = logging.getLogger(__name__)

BUFFER_WINDOW_MS = 300_000
"""Tokens within five minutes of expiry are refreshed before use."""


def token_state(
    credential: Optional[Credential], now: int, buffer_ms: int = BUFFER_WINDOW_MS
) -> TokenState:
    """Classify *credential* at time *now* (milliseconds)."""
    if credential is None:
        return TokenState.NO_CREDENTIAL
    if credential.expires_at <= now:
        return TokenState.EXPIRED
    if credential.expires_at <= now + buffer_ms:
        return TokenState.EXPIRING_SOON
    return TokenState.VALID


class LoginFlow:
    """One interactive login attempt.

    Holds the PKCE session for a single :meth:`Auth.login` call. Show
    :attr:`url` to the user, then pass the code they paste back to
    :meth:`complete`. A flow can be completed at most once.

    When credentials were already live and no overwrite was requested,
    :attr:`url` is ``None`` and :attr:`already_authenticated` is ``True``.

    Attributes:
        url: The authorization URL, or ``None`` for a no-op flow.
        state: The ``state`` value embedded in :attr:`url`.
        mode: The login mode the URL targets.
        already_authenticated: Whether this is a no-op flow.
    """

    def __init__(
        self,
        auth: "Auth",
        mode: LoginMode,
        *,
        pkce: Optional[PKCESession] = None,
        state: Optional[str] = None,
        url: Optional[str] = None,
        overwrite: bool = False,
    ) -> None:
        self._auth = auth
        self._pkce = pkce
        self._overwrite = overwrite
        self._consumed = False
        self.mode = mode
        self.state = state
        self.url = url

    @property
    def already_authenticated(self) -> bool:
        return self.url is None

    @property
    def consumed(self) -> bool:
        return self._consumed

    async def complete(self, code: str) -> Credential:
        """Exchange *code* for tokens and persist them.

        Args:
            code: The authorization code shown by the provider, optionally
                in ``code#state`` form.

        Returns:
            The newly stored credential.

        Raises:
            ConflictError: If this is a no-op flow, or if live credentials
                appeared and overwrite was not requested.
            LoginFlowConsumedError: If ``complete`` already ran on this flow.
            ExchangeFailedError: If the provider rejects the code.
        """
        if self._pkce is None:
            raise ConflictError(
                "Already authenticated; start a new login with overwrite=True to replace "
                "the stored credentials",
                path=str(self._auth.credentials_path),
            )
        if self._consumed:
            raise LoginFlowConsumedError(
                "This login flow was already completed; call login() again for a new one"
            )
        self._consumed = True
        return await self._auth._complete_login(self._pkce, code, overwrite=self._overwrite)

    def __repr__(self) -> str:
        return (
            f"LoginFlow(mode={self.mode.value!r}, "
            f"already_authenticated={self.already_authenticated}, consumed={self._consumed})"
        )


class Auth:
    """Manage the OAuth credential stored at one path.

    Args:
        options: An :class:`~claude_sdk_auth.models.AuthOptions`, a
            credentials path, or ``None`` for the environment override or
            the shared default path.
        provider: Endpoint configuration. Defaults to
            :func:`~claude_sdk_auth.config.load_provider_config`.
        store: Credential store to use instead of one built from *options*.
        token_client: Token endpoint client to use instead of a default one.
        clock: Millisecond clock for expiry decisions.
        home: Home directory for ``~`` expansion in the credentials path.

    Example::

        auth = Auth("./.auth.json")
        if not await auth.is_valid():
            flow = await auth.login()
            print(flow.url)
            await flow.complete(input("Code: "))
        token = await auth.get_token()
    """

    BUFFER_WINDOW_MS = BUFFER_WINDOW_MS

    def __init__(
        self,
        options: Union[AuthOptions, str, os.PathLike, None] = None,
        *,
        provider: Optional[ProviderConfig] = None,
        store: Optional[CredentialStore] = None,
        token_client: Optional[TokenClient] = None,
        clock: Optional[Clock] = None,
        home: Optional[Path] = None,
    ) -> None:
        self._options = resolve_options(options)
        self._clock: Clock = clock or now_ms
        self._provider = provider or load_provider_config()
        self._store = store or CredentialStore(
            self._options.credentials_path,
            self._options.storage_mode,
            self._options.provider_key,
            home=home,
        )
        self._token_client = token_client or TokenClient(self._provider, clock=self._clock)

    @property
    def options(self) -> AuthOptions:
        return self._options

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def credentials_path(self) -> Path:
        """Absolute path of the credentials file this manager owns."""
        return self._store.path

    def get_credentials_path(self) -> str:
        return str(self._store.path)

    # ------------------------------------------------------------------ #
    # Token state
    # ------------------------------------------------------------------ #

    async def credential(self) -> Optional[Credential]:
        """Return the stored credential without refreshing it."""
        return await self._store.load()

    async def state(self) -> TokenState:
        """Return the current :class:`~claude_sdk_auth.models.TokenState`."""
        return token_state(await self._store.load(), self._clock(), self.BUFFER_WINDOW_MS)

    async def is_valid(self) -> bool:
        """Return ``True`` only when the stored token is outside the buffer window."""
        return await self.state() is TokenState.VALID

    async def get_token(self) -> str:
        """Return a usable access token, refreshing it if necessary.

        Raises:
            NotAuthenticatedError: If no credential is stored.
            TokenExpiredError: If the token is stale and auto-refresh is off.
            ExchangeFailedError: If the refresh is rejected. The stale token
                is never returned as a fallback.
        """
        credential = await self._store.load()
        current = token_state(credential, self._clock(), self.BUFFER_WINDOW_MS)
        if current is TokenState.NO_CREDENTIAL:
            raise NotAuthenticatedError(
                f"No stored credentials at {self.credentials_path}; run a login flow first"
            )
        if current is TokenState.VALID:
            return credential.access_token
        if not self._options.auto_refresh:
            raise TokenExpiredError(
                f"Access token at {self.credentials_path} is {current.value.replace('_', ' ')} "
                "and auto-refresh is disabled"
            )
        refreshed = await self._coalesced_refresh(force=False)
        return refreshed.access_token

    async def refresh(self) -> Credential:
        """Refresh the stored token now, whatever its state.

        Joins an in-flight refresh for the same path if there is one.

        Raises:
            NotAuthenticatedError: If no credential is stored.
            ExchangeFailedError: If the provider rejects the refresh token.
        """
        return await self._coalesced_refresh(force=True)

    async def _coalesced_refresh(self, *, force: bool) -> Credential:
        return await run_once(str(self.credentials_path), lambda: self._refresh_once(force))

    async def _refresh_once(self, force: bool) -> Credential:
        # Re-read: another instance or process may have refreshed already.
        credential = await self._store.load()
        if credential is None:
            raise NotAuthenticatedError(
                f"No stored credentials at {self.credentials_path}; run a login flow first"
            )
        current = token_state(credential, self._clock(), self.BUFFER_WINDOW_MS)
        if not force and current is TokenState.VALID:
            logger.debug("Credentials at %s already refreshed", self.credentials_path)
            return credential

        logger.info("Refreshing access token for %s (%s)", self.credentials_path, current.value)
        refreshed = await self._token_client.refresh(credential.refresh_token)
        await self._store.save(refreshed, overwrite=True)
        logger.info("Refreshed access token for %s", self.credentials_path)
        return refreshed

    # ------------------------------------------------------------------ #
    # Login / logout
    # ------------------------------------------------------------------ #

    async def login(
        self, mode: Union[LoginMode, str] = LoginMode.MAX, *, overwrite: Optional[bool] = None
    ) -> LoginFlow:
        """Start an interactive login.

        Args:
            mode: ``"max"`` (claude.ai) or ``"console"``.
            overwrite: Allow replacing live credentials. Defaults to
                :attr:`AuthOptions.overwrite_existing`.

        Returns:
            A :class:`LoginFlow`. It is a no-op flow when live credentials
            exist and overwrite was not requested.

        Raises:
            ValueError: If *mode* is not a known login mode.
        """
        try:
            login_mode = LoginMode(mode)
        except ValueError:
            allowed = ", ".join(m.value for m in LoginMode)
            raise ValueError(f"Unknown login mode {mode!r} (expected one of: {allowed})") from None

        allow_overwrite = self._options.overwrite_existing if overwrite is None else overwrite
        if not allow_overwrite and await self.is_valid():
            logger.info("Already authenticated at %s; login is a no-op", self.credentials_path)
            return LoginFlow(self, login_mode)

        pkce = generate_pkce()
        state = generate_state()
        url = build_authorize_url(login_mode, pkce.challenge, state, self._provider)
        logger.debug("Started %s login for %s", login_mode.value, self.credentials_path)
        return LoginFlow(
            self, login_mode, pkce=pkce, state=state, url=url, overwrite=allow_overwrite
        )

    def _is_live(self, credential: Credential) -> bool:
        return token_state(credential, self._clock(), self.BUFFER_WINDOW_MS) is TokenState.VALID

    def _live_conflict(self) -> ConflictError:
        logger.info("Refusing login: live credentials exist at %s", self.credentials_path)
        return ConflictError(
            f"Live credentials already exist at {self.credentials_path}; "
            "log in with overwrite=True to replace them",
            path=str(self.credentials_path),
        )

    async def _complete_login(
        self, pkce: PKCESession, code: str, *, overwrite: bool
    ) -> Credential:
        if not overwrite and await self.is_valid():
            raise self._live_conflict()
        credential = await self._token_client.exchange(code, pkce.verifier)
        # Another login may have stored live credentials during the exchange.
        try:
            await self._store.save(credential, overwrite=overwrite, keep=self._is_live)
        except ConflictError:
            raise self._live_conflict() from None
        logger.info("Stored new credentials at %s", self.credentials_path)
        return credential

    async def logout(self) -> None:
        """Delete the stored credentials. Safe to call when none exist."""
        await self._store.clear()
        logger.info("Logged out: removed %s", self.credentials_path)
