"""Shared test fixtures for claude_sdk_auth.

Provides an isolated environment (no real home directory, no leaking
``CLAUDE_SDK_AUTH_*`` variables), a controllable clock, credential factories
and a fake token client that counts network calls.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import pytest

from claude_sdk_auth.exceptions import ExchangeFailedError
from claude_sdk_auth.models import Credential
from claude_sdk_auth.output import OutputFormat, OutputManager, reset_output, set_output

NOW = 1_700_000_000_000
HOUR_MS = 3_600_000


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp directory and clear CLAUDE_SDK_AUTH_* variables.

    Returns:
        The fake home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in [
        "CLAUDE_SDK_AUTH_CREDENTIALS_PATH",
        "CLAUDE_SDK_AUTH_STORAGE_MODE",
        "CLAUDE_SDK_AUTH_AUTO_REFRESH",
        "CLAUDE_SDK_AUTH_CLIENT_ID",
        "CLAUDE_SDK_AUTH_TOKEN_URL",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Clock and credentials
# ---------------------------------------------------------------------------


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_credential(
    expires_at: int = NOW + HOUR_MS,
    access_token: str = "access-1",
    refresh_token: str = "refresh-1",
) -> Credential:
    return Credential(
        kind="oauth",
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
    )


@pytest.fixture
def credentials_path(tmp_path: Path) -> Path:
    """A private credentials file (unwrapped layout under AUTO)."""
    return tmp_path / "auth" / "credentials.json"


# ---------------------------------------------------------------------------
# Fake token endpoint
# ---------------------------------------------------------------------------


class FakeTokenClient:
    """Stands in for TokenClient; records calls and can be made slow or failing.

    Args:
        clock: Clock used to stamp ``expires_at`` on issued credentials.
        delay: Seconds each call sleeps before answering, so concurrent
            callers overlap.
        fail_with: If set, every call raises this exception after the delay.
    """

    def __init__(
        self,
        clock: FakeClock,
        *,
        delay: float = 0.0,
        fail_with: Optional[Exception] = None,
    ) -> None:
        self.clock = clock
        self.delay = delay
        self.fail_with = fail_with
        self.refresh_calls: list[str] = []
        self.exchange_calls: list[tuple[str, str]] = []

    async def refresh(self, refresh_token: str) -> Credential:
        self.refresh_calls.append(refresh_token)
        n = len(self.refresh_calls)
        await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return make_credential(
            expires_at=self.clock() + HOUR_MS,
            access_token=f"refreshed-access-{n}",
            refresh_token=f"refreshed-refresh-{n}",
        )

    async def exchange(self, code: str, verifier: str) -> Credential:
        self.exchange_calls.append((code, verifier))
        await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return make_credential(
            expires_at=self.clock() + HOUR_MS,
            access_token=f"access-for-{code}",
            refresh_token=f"refresh-for-{code}",
        )


@pytest.fixture
def token_client(clock: FakeClock) -> FakeTokenClient:
    return FakeTokenClient(clock)


@pytest.fixture
def rejecting_token_client(clock: FakeClock) -> FakeTokenClient:
    return FakeTokenClient(
        clock,
        fail_with=ExchangeFailedError(
            "Token refresh failed with status 400", status_code=400, body='{"error":"invalid_grant"}'
        ),
    )


@pytest.fixture
def make_token_client(clock: FakeClock):
    """Factory fixture: ``make_token_client(delay=0.05, fail_with=exc)``."""

    def _make(**kwargs) -> FakeTokenClient:
        return FakeTokenClient(clock, **kwargs)

    return _make


@pytest.fixture(name="make_credential")
def make_credential_fixture():
    """Expose :func:`make_credential` to test modules."""
    return make_credential
