"""Tests for path resolution, option precedence and atomic writes."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from claude_sdk_auth.config import (
    DEFAULT_CREDENTIALS_PATH,
    atomic_write,
    default_credentials_path,
    is_shared_path,
    load_provider_config,
    resolve_options,
    resolve_path,
    resolve_storage_mode,
)
from claude_sdk_auth.exceptions import ConfigError
from claude_sdk_auth.models import AuthOptions, StorageMode


# ------------------------------------------------------------------ #
# Path resolution
# ------------------------------------------------------------------ #


class TestResolvePath:
    def test_tilde_expands_against_explicit_home(self, tmp_path: Path) -> None:
        home = tmp_path / "someone"
        assert resolve_path("~/.claude/x.json", home) == home / ".claude" / "x.json"

    def test_bare_tilde_is_home(self, tmp_path: Path) -> None:
        assert resolve_path("~", tmp_path) == tmp_path

    def test_relative_path_is_made_absolute_against_cwd(self, tmp_path: Path) -> None:
        # isolated_env chdirs into tmp_path
        assert resolve_path("./.auth.json") == tmp_path / ".auth.json"

    def test_absolute_path_is_normalised(self, tmp_path: Path) -> None:
        assert resolve_path(str(tmp_path / "a" / ".." / "b.json")) == tmp_path / "b.json"

    def test_does_not_touch_filesystem(self, tmp_path: Path) -> None:
        target = tmp_path / "missing" / "dir" / "file.json"
        resolve_path(target)
        assert not (tmp_path / "missing").exists()

    def test_default_home_comes_from_environment(self, isolated_env: Path) -> None:
        assert default_credentials_path() == isolated_env / ".claude" / ".credentials.json"

    def test_tilde_user_form_is_not_expanded(self, tmp_path: Path) -> None:
        assert resolve_path("~other/file", tmp_path) == tmp_path / "~other" / "file"


class TestSharedPath:
    def test_default_path_is_shared(self, tmp_path: Path) -> None:
        assert is_shared_path(DEFAULT_CREDENTIALS_PATH, tmp_path)
        assert is_shared_path(tmp_path / ".claude" / ".credentials.json", tmp_path)

    def test_private_path_is_not_shared(self, tmp_path: Path) -> None:
        assert not is_shared_path(tmp_path / "auth.json", tmp_path)

    def test_auto_storage_mode(self, tmp_path: Path) -> None:
        assert (
            resolve_storage_mode(StorageMode.AUTO, DEFAULT_CREDENTIALS_PATH, tmp_path)
            is StorageMode.WRAPPED
        )
        assert (
            resolve_storage_mode(StorageMode.AUTO, tmp_path / "auth.json", tmp_path)
            is StorageMode.UNWRAPPED
        )

    def test_explicit_storage_mode_wins(self, tmp_path: Path) -> None:
        assert (
            resolve_storage_mode(StorageMode.UNWRAPPED, DEFAULT_CREDENTIALS_PATH, tmp_path)
            is StorageMode.UNWRAPPED
        )


# ------------------------------------------------------------------ #
# Option precedence
# ------------------------------------------------------------------ #


class TestResolveOptions:
    def test_defaults(self) -> None:
        opts = resolve_options(None)
        assert opts.credentials_path == DEFAULT_CREDENTIALS_PATH
        assert opts.auto_refresh is True
        assert opts.storage_mode is StorageMode.AUTO

    def test_bare_path(self, tmp_path: Path) -> None:
        assert resolve_options(tmp_path / "c.json").credentials_path == str(tmp_path / "c.json")
        assert resolve_options("./x.json").credentials_path == "./x.json"

    def test_env_path_used_when_not_explicit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_SDK_AUTH_CREDENTIALS_PATH", "/env/creds.json")
        assert resolve_options(None).credentials_path == "/env/creds.json"
        assert resolve_options(AuthOptions()).credentials_path == "/env/creds.json"

    def test_explicit_path_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_SDK_AUTH_CREDENTIALS_PATH", "/env/creds.json")
        assert resolve_options("/explicit.json").credentials_path == "/explicit.json"

    def test_env_storage_mode_and_auto_refresh(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_SDK_AUTH_STORAGE_MODE", "Wrapped")
        monkeypatch.setenv("CLAUDE_SDK_AUTH_AUTO_REFRESH", "no")
        opts = resolve_options(None)
        assert opts.storage_mode is StorageMode.WRAPPED
        assert opts.auto_refresh is False

    def test_explicit_fields_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_SDK_AUTH_STORAGE_MODE", "wrapped")
        monkeypatch.setenv("CLAUDE_SDK_AUTH_AUTO_REFRESH", "false")
        opts = resolve_options(
            AuthOptions(storage_mode=StorageMode.UNWRAPPED, auto_refresh=True)
        )
        assert opts.storage_mode is StorageMode.UNWRAPPED
        assert opts.auto_refresh is True

    def test_invalid_env_values_raise(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_SDK_AUTH_STORAGE_MODE", "sideways")
        with pytest.raises(ConfigError, match="sideways"):
            resolve_options(None)
        monkeypatch.delenv("CLAUDE_SDK_AUTH_STORAGE_MODE")
        monkeypatch.setenv("CLAUDE_SDK_AUTH_AUTO_REFRESH", "maybe")
        with pytest.raises(ConfigError, match="maybe"):
            resolve_options(None)

    def test_input_options_not_mutated(self) -> None:
        original = AuthOptions()
        resolve_options(original)
        assert original.credentials_path is None


class TestProviderConfig:
    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLAUDE_SDK_AUTH_CLIENT_ID", "my-client")
        monkeypatch.setenv("CLAUDE_SDK_AUTH_TOKEN_URL", "https://idp.test/token")
        provider = load_provider_config()
        assert provider.client_id == "my-client"
        assert provider.token_url == "https://idp.test/token"

    def test_defaults_without_env(self) -> None:
        assert load_provider_config().client_id == "9d1c250a-e61b-44d9-88ed-5944d1962f5e"


# ------------------------------------------------------------------ #
# Atomic writes
# ------------------------------------------------------------------ #


class TestAtomicWrite:
    def test_creates_parents_and_writes(self, tmp_path: Path) -> None:
        target = tmp_path / "deep" / "dir" / "file.json"
        atomic_write(target, "{}\n")
        assert target.read_text() == "{}\n"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_permissions_are_0600(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write(target, "secret")
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_replacing_loose_file_tightens_permissions(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")
        target.chmod(0o644)
        atomic_write(target, "new")
        assert stat.S_IMODE(target.stat().st_mode) == 0o600
        assert target.read_text() == "new"

    def test_failure_leaves_original_and_no_temp_files(self, tmp_path: Path) -> None:
        directory = tmp_path / "store"
        directory.mkdir()
        target = directory / "file.json"
        target.write_text("original")
        with patch("claude_sdk_auth.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, "new")
        assert target.read_text() == "original"
        assert [p.name for p in directory.iterdir()] == ["file.json"]
