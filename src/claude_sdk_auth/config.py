"""Configuration: credential path resolution, option precedence, atomic writes.

This module handles everything the package reads from its environment:

* **Path resolution** -- :func:`resolve_path` expands ``~`` against an
  explicit home directory so tests never depend on the real ``$HOME``.
  :data:`DEFAULT_CREDENTIALS_PATH` is the file shared with the external CLI.
* **Option precedence** -- :func:`resolve_options` merges explicit
  arguments, ``CLAUDE_SDK_AUTH_*`` environment variables, and defaults into
  an :class:`~claude_sdk_auth.models.AuthOptions`.
* **Provider settings** -- :func:`load_provider_config` applies environment
  overrides on top of :class:`~claude_sdk_auth.models.ProviderConfig`.
* **Atomic file writes** -- :func:`atomic_write` replaces a file via a
  temp-file-then-rename so concurrent readers never see a partial document.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from claude_sdk_auth.exceptions import ConfigError
from claude_sdk_auth.models import AuthOptions, ProviderConfig, StorageMode

DEFAULT_CREDENTIALS_PATH = "~/.claude/.credentials.json"
"""Credentials file shared with the external CLI."""

ENV_CREDENTIALS_PATH = "CLAUDE_SDK_AUTH_CREDENTIALS_PATH"
ENV_STORAGE_MODE = "CLAUDE_SDK_AUTH_STORAGE_MODE"
ENV_AUTO_REFRESH = "CLAUDE_SDK_AUTH_AUTO_REFRESH"
ENV_CLIENT_ID = "CLAUDE_SDK_AUTH_CLIENT_ID"
ENV_TOKEN_URL = "CLAUDE_SDK_AUTH_TOKEN_URL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

PathOrOptions = Union[AuthOptions, str, os.PathLike, None]


# --- Path resolution ---


def resolve_path(filepath: Union[str, os.PathLike], home: Optional[Path] = None) -> Path:
    """Resolve *filepath* to an absolute path.

    ``~`` and ``~/...`` expand against *home*; any other relative path is
    made absolute against the current working directory. Symlinks are not
    followed and the filesystem is not touched.

    Args:
        filepath: The path to resolve.
        home: Home directory used for ``~`` expansion. Defaults to
            :meth:`pathlib.Path.home`.

    Returns:
        An absolute :class:`~pathlib.Path`.
    """
    text = os.fspath(filepath)
    if text == "~" or text.startswith(("~/", "~" + os.sep)):
        base = home if home is not None else Path.home()
        text = os.path.join(base, text[2:])
    return Path(os.path.abspath(text))


def default_credentials_path(home: Optional[Path] = None) -> Path:
    """Return the resolved shared default credentials path."""
    return resolve_path(DEFAULT_CREDENTIALS_PATH, home)


def is_shared_path(path: Union[str, os.PathLike], home: Optional[Path] = None) -> bool:
    """Return ``True`` if *path* is the credentials file shared with the external CLI."""
    return resolve_path(path, home) == default_credentials_path(home)


def resolve_storage_mode(
    mode: StorageMode, path: Union[str, os.PathLike], home: Optional[Path] = None
) -> StorageMode:
    """Collapse :attr:`StorageMode.AUTO` into a concrete layout for *path*.

    The shared default path is always wrapped so the external CLI can read
    it; private paths default to the bare credential object.
    """
    if mode is not StorageMode.AUTO:
        return mode
    return StorageMode.WRAPPED if is_shared_path(path, home) else StorageMode.UNWRAPPED


# --- Option precedence ---


def _env_bool(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {raw!r}")


def _env_storage_mode() -> Optional[StorageMode]:
    raw = os.environ.get(ENV_STORAGE_MODE)
    if not raw:
        return None
    try:
        return StorageMode(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in StorageMode)
        raise ConfigError(
            f"Invalid storage mode in {ENV_STORAGE_MODE}: {raw!r} (expected one of: {allowed})"
        ) from None


def resolve_options(options: PathOrOptions = None) -> AuthOptions:
    """Resolve auth options with the full precedence chain.

    Precedence (high to low):
        1. Explicit argument (an :class:`AuthOptions` field that was set, or
           a bare path)
        2. Environment variables (``CLAUDE_SDK_AUTH_CREDENTIALS_PATH``,
           ``CLAUDE_SDK_AUTH_STORAGE_MODE``, ``CLAUDE_SDK_AUTH_AUTO_REFRESH``)
        3. Defaults (:data:`DEFAULT_CREDENTIALS_PATH`, auto storage mode,
           auto-refresh on)

    Args:
        options: ``None``, a credentials path, or a partially-filled
            :class:`AuthOptions`.

    Returns:
        A new :class:`AuthOptions` with ``credentials_path`` always set.

    Raises:
        ConfigError: If an environment variable holds an invalid value.
    """
    if options is None:
        explicit = AuthOptions()
    elif isinstance(options, AuthOptions):
        explicit = options
    else:
        explicit = AuthOptions(credentials_path=os.fspath(options))

    given = explicit.model_fields_set
    updates: dict[str, object] = {}

    if explicit.credentials_path is None:
        updates["credentials_path"] = os.environ.get(ENV_CREDENTIALS_PATH) or DEFAULT_CREDENTIALS_PATH

    if "storage_mode" not in given:
        env_mode = _env_storage_mode()
        if env_mode is not None:
            updates["storage_mode"] = env_mode

    if "auto_refresh" not in given:
        env_refresh = _env_bool(ENV_AUTO_REFRESH)
        if env_refresh is not None:
            updates["auto_refresh"] = env_refresh

    return explicit.model_copy(update=updates)


def load_provider_config() -> ProviderConfig:
    """Return the provider configuration with environment overrides applied.

    ``CLAUDE_SDK_AUTH_CLIENT_ID`` replaces the OAuth client id and
    ``CLAUDE_SDK_AUTH_TOKEN_URL`` the token endpoint. Authorize endpoints and
    scopes are fixed.
    """
    config = ProviderConfig()
    client_id = os.environ.get(ENV_CLIENT_ID)
    if client_id:
        config.client_id = client_id
    token_url = os.environ.get(ENV_TOKEN_URL)
    if token_url:
        config.token_url = token_url
    return config


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Permissions are set
    on the temp file before any content is written, so the secret is never
    readable by other users, even momentarily. On any failure the temp file
    is cleaned up.

    Args:
        path: Destination file.
        data: Text content to write.
        mode: Permission bits applied to the file (default ``0o600``).
    """
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including cancellation).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
