"""Token endpoint client: authorization-code and refresh-token exchanges.

:class:`TokenClient` performs the two form-encoded POSTs the provider
accepts and turns the JSON response into a
:class:`~claude_sdk_auth.models.Credential`. It never persists anything and
never retries: an authorization code is single-use and a rejected refresh
token will not succeed on a second attempt, so every failure surfaces as
:class:`~claude_sdk_auth.exceptions.ExchangeFailedError`.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

import httpx

from claude_sdk_auth.clock import Clock, now_ms
from claude_sdk_auth.exceptions import ExchangeFailedError
from claude_sdk_auth.models import Credential, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def split_pasted_code(raw: str) -> tuple[str, Optional[str]]:
    """Split a pasted authorization code into ``(code, state)``.

    The provider's callback page shows the code as ``<code>#<state>``.
    Surrounding whitespace is stripped; the state is ``None`` when absent.
    """
    text = raw.strip()
    code, sep, state = text.partition("#")
    return code, (state if sep and state else None)


class TokenClient:
    """Async client for the provider's token endpoint.

    Args:
        provider: Endpoint and client registration. Defaults to
            :class:`~claude_sdk_auth.models.ProviderConfig`.
        http_client: An :class:`httpx.AsyncClient` to use as-is. When
            omitted, a short-lived client is created for each call.
        clock: Millisecond clock used to compute ``expiresAt``.
        timeout: Request timeout in seconds for self-created clients.
    """

    def __init__(
        self,
        provider: Optional[ProviderConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Clock] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._provider = provider or ProviderConfig()
        self._http_client = http_client
        self._clock: Clock = clock or now_ms
        self._timeout = timeout

    @property
    def provider(self) -> ProviderConfig:
        return self._provider

    async def exchange(self, code: str, verifier: str) -> Credential:
        """Exchange an authorization code for a token pair.

        Args:
            code: The code the user pasted, optionally as ``code#state``.
            verifier: The PKCE verifier matching the challenge sent in the
                authorize URL.

        Returns:
            A new :class:`Credential`.

        Raises:
            ExchangeFailedError: On a non-2xx response, a network error, or
                a response lacking ``access_token``, ``refresh_token`` or
                ``expires_in``.
        """
        auth_code, state = split_pasted_code(code)
        if not auth_code:
            raise ExchangeFailedError("Authorization code is empty")

        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": auth_code,
            "client_id": self._provider.client_id,
            "redirect_uri": self._provider.redirect_uri,
            "code_verifier": verifier,
        }
        if state is not None:
            data["state"] = state

        payload, status, body = await self._post(data, action="Token exchange")
        refresh_token = payload.get("refresh_token")
        if not isinstance(refresh_token, str) or not refresh_token:
            raise ExchangeFailedError(
                "Invalid token response: missing 'refresh_token'",
                status_code=status,
                body=body,
            )
        return self._credential(payload, refresh_token, status, body)

    async def refresh(self, refresh_token: str) -> Credential:
        """Exchange a refresh token for a new token pair.

        If the response omits ``refresh_token``, *refresh_token* is kept.

        Raises:
            ExchangeFailedError: On a non-2xx response, a network error, or
                a response lacking ``access_token`` or ``expires_in``.
        """
        data: dict[str, str] = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._provider.client_id,
        }
        payload, status, body = await self._post(data, action="Token refresh")
        rotated = payload.get("refresh_token")
        if isinstance(rotated, str) and rotated:
            refresh_token = rotated
        return self._credential(payload, refresh_token, status, body)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _post(self, data: dict[str, str], *, action: str) -> tuple[dict[str, Any], int, str]:
        url = self._provider.token_url
        logger.debug("%s: POST %s (grant_type=%s)", action, url, data["grant_type"])
        try:
            if self._http_client is not None:
                response = await self._send(self._http_client, url, data)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._send(client, url, data)
        except httpx.HTTPError as exc:
            logger.warning("%s failed: network error talking to %s: %s", action, url, exc)
            raise ExchangeFailedError(f"{action} failed: {exc}") from exc

        body = response.text
        if not response.is_success:
            logger.warning("%s failed with status %d", action, response.status_code)
            raise ExchangeFailedError(
                f"{action} failed with status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExchangeFailedError(
                f"{action} returned a non-JSON response",
                status_code=response.status_code,
                body=body,
            ) from exc
        if not isinstance(payload, dict):
            raise ExchangeFailedError(
                f"{action} returned an unexpected JSON document",
                status_code=response.status_code,
                body=body,
            )
        return payload, response.status_code, body

    @staticmethod
    async def _send(client: httpx.AsyncClient, url: str, data: dict[str, str]) -> httpx.Response:
        return await client.post(url, data=data, headers={"Accept": "application/json"})

    def _credential(
        self, payload: dict[str, Any], refresh_token: str, status: int, body: str
    ) -> Credential:
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ExchangeFailedError(
                "Invalid token response: missing 'access_token'",
                status_code=status,
                body=body,
            )
        expires_in = payload.get("expires_in")
        if (
            isinstance(expires_in, bool)
            or not isinstance(expires_in, (int, float))
            or not math.isfinite(expires_in * 1000)
        ):
            raise ExchangeFailedError(
                "Invalid token response: missing or non-finite 'expires_in'",
                status_code=status,
                body=body,
            )
        return Credential(
            kind="oauth",
            refresh_token=refresh_token,
            access_token=access_token,
            expires_at=self._clock() + int(expires_in * 1000),
        )
