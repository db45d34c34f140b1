"""File-backed credential store.

Stores one :class:`~claude_sdk_auth.models.Credential` in a JSON document at
a configurable path. Files are written atomically via
:func:`~claude_sdk_auth.config.atomic_write` with ``0o600`` permissions so
that secrets are never world-readable, even momentarily.

Two layouts exist, decided once in :meth:`CredentialStore.encode` and
:meth:`CredentialStore.decode`:

* **wrapped** -- ``{"anthropic": {...credential...}}``. Used for the file
  shared with the external CLI; other top-level keys survive save and clear.
* **unwrapped** -- the credential object itself, for private paths.

A missing, empty, corrupt or schema-invalid file loads as ``None``. That is
the normal first-run state, not an error.

See Also:
    :class:`~claude_sdk_auth.auth.manager.Auth` -- the only writer.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union

from claude_sdk_auth.config import atomic_write, resolve_path, resolve_storage_mode
from claude_sdk_auth.exceptions import ConflictError, CredentialValidationError
from claude_sdk_auth.models import (
    Credential,
    StorageMode,
    is_valid_credential,
    validate_credential,
)

logger = logging.getLogger(__name__)

KeepExisting = Callable[[Credential], bool]

_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _path_locks_guard:
        return _path_locks.setdefault(path, threading.Lock())


class CredentialStore:
    """Read/write the credential document at a single path.

    The public API is async; each operation runs its blocking file I/O in a
    worker thread. The ``*_sync`` variants are used by the CLI and tests.

    Args:
        path: Credentials file. ``~`` expands against *home*.
        storage_mode: File layout. ``AUTO`` is wrapped for the shared default
            path and unwrapped elsewhere.
        provider_key: Top-level key used by the wrapped layout.
        protect_existing: Refuse to replace a loadable credential unless the
            caller passes ``overwrite=True``.
        home: Home directory for ``~`` expansion (defaults to the real one).

    Example::

        store = CredentialStore("./.auth.json")
        await store.save(cred)
        assert await store.load() == cred
    """

    def __init__(
        self,
        path: Union[str, os.PathLike],
        storage_mode: StorageMode = StorageMode.AUTO,
        provider_key: str = "anthropic",
        *,
        protect_existing: bool = True,
        home: Optional[Path] = None,
    ) -> None:
        self._path = resolve_path(path, home)
        self._mode = resolve_storage_mode(storage_mode, self._path, home)
        self._provider_key = provider_key
        self._protect_existing = protect_existing

    @property
    def path(self) -> Path:
        """The absolute path of the credentials file."""
        return self._path

    @property
    def storage_mode(self) -> StorageMode:
        """The concrete layout (never ``AUTO``)."""
        return self._mode

    @property
    def provider_key(self) -> str:
        return self._provider_key

    # ------------------------------------------------------------------ #
    # Layout
    # ------------------------------------------------------------------ #

    def encode(self, credential: Credential, existing: Any = None) -> dict[str, Any]:
        """Build the document to write for *credential*.

        Args:
            credential: The credential to persist.
            existing: The currently stored document, if any. In wrapped mode
                its other top-level keys are carried over, unless it is a
                bare credential being migrated to the wrapped layout.
        """
        document = credential.to_document()
        if self._mode is StorageMode.UNWRAPPED:
            return document
        if isinstance(existing, dict) and not is_valid_credential(existing):
            merged = dict(existing)
        else:
            merged = {}
        merged[self._provider_key] = document
        return merged

    def decode(self, document: Any) -> Optional[Credential]:
        """Extract the credential from a parsed document, or ``None``.

        The layout preferred by the storage mode is tried first and the other
        one second, so a file written in either layout loads.
        """
        if not isinstance(document, dict):
            return None
        wrapped = document.get(self._provider_key)
        if self._mode is StorageMode.WRAPPED:
            candidates = [wrapped, document]
        else:
            candidates = [document, wrapped]
        reasons = []
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            try:
                return validate_credential(candidate)
            except CredentialValidationError as exc:
                reasons.append(str(exc))
        if reasons:
            logger.debug("No valid credential in %s: %s", self._path, reasons[0])
        return None

    # ------------------------------------------------------------------ #
    # Blocking operations
    # ------------------------------------------------------------------ #

    def _read_document(self) -> Any:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Cannot read %s: %s", self._path, exc.strerror or exc)
            return None
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.debug("Ignoring unparsable credentials file %s: %s", self._path, exc.msg)
            return None

    def load_sync(self) -> Optional[Credential]:
        """Blocking form of :meth:`load`."""
        return self.decode(self._read_document())

    def _must_keep(self, current: Optional[Credential], keep: Optional[KeepExisting]) -> bool:
        if current is None:
            return False
        if keep is not None:
            return keep(current)
        return self._protect_existing

    def save_sync(
        self,
        credential: Credential,
        *,
        overwrite: bool = False,
        keep: Optional[KeepExisting] = None,
    ) -> None:
        """Blocking form of :meth:`save`."""
        # Check and write under one lock so concurrent savers see each other.
        with _lock_for(self._path):
            existing = self._read_document()
            if not overwrite and self._must_keep(self.decode(existing), keep):
                logger.info("Refusing to overwrite existing credentials at %s", self._path)
                raise ConflictError(
                    f"Credentials already exist at {self._path}; "
                    "pass overwrite=True to replace them",
                    path=str(self._path),
                )
            text = json.dumps(self.encode(credential, existing), indent=2) + "\n"
            atomic_write(self._path, text)
        logger.debug("Saved credentials to %s (%s)", self._path, self._mode.value)

    def clear_sync(self) -> None:
        """Blocking form of :meth:`clear`."""
        with _lock_for(self._path):
            remaining = self._without_credential(self._read_document())
            if remaining:
                atomic_write(self._path, json.dumps(remaining, indent=2) + "\n")
                logger.debug(
                    "Removed %r from %s, kept %d other key(s)",
                    self._provider_key,
                    self._path,
                    len(remaining),
                )
                return
            self._path.unlink(missing_ok=True)
        logger.debug("Cleared credentials at %s", self._path)

    def _without_credential(self, document: Any) -> Optional[dict[str, Any]]:
        """Return what a wrapped document holds besides our credential."""
        if self._mode is not StorageMode.WRAPPED or not isinstance(document, dict):
            return None
        if is_valid_credential(document):
            return None
        return {k: v for k, v in document.items() if k != self._provider_key}

    # ------------------------------------------------------------------ #
    # Async facade
    # ------------------------------------------------------------------ #

    async def load(self) -> Optional[Credential]:
        """Load the stored credential, or ``None`` if absent or invalid. Never raises."""
        return await asyncio.to_thread(self.load_sync)

    async def save(
        self,
        credential: Credential,
        *,
        overwrite: bool = False,
        keep: Optional[KeepExisting] = None,
    ) -> None:
        """Persist *credential* atomically with ``0o600`` permissions.

        The existing credential is read, checked and replaced while holding
        a per-path lock, so two concurrent saves cannot both pass the check.

        Args:
            credential: The credential to write.
            overwrite: Replace a loadable credential unconditionally.
            keep: Decides whether the currently stored credential must be
                kept. Defaults to the store's ``protect_existing`` setting.

        Raises:
            ConflictError: If *overwrite* is false and the stored credential
                must be kept.
            OSError: If the file cannot be written.
        """
        await asyncio.to_thread(self.save_sync, credential, overwrite=overwrite, keep=keep)

    async def clear(self) -> None:
        """Remove the stored credential. A missing file is not an error.

        Unwrapped files are deleted. A wrapped file loses only the provider
        key; it is deleted once nothing else is left in it.
        """
        await asyncio.to_thread(self.clear_sync)
