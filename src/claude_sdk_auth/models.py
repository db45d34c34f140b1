"""Canonical Pydantic models shared across all claude_sdk_auth modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Persisted / wire models** -- serialised to the credentials file or derived
from the token endpoint:
    :class:`Credential` and the :func:`validate_credential` /
    :func:`is_valid_credential` helpers.

**Runtime models** -- never written to disk:
    :class:`PKCESession`, :class:`AuthOptions`, :class:`ProviderConfig`,
    and the :class:`StorageMode`, :class:`LoginMode` and :class:`TokenState`
    enumerations.

The credential file is shared with an external CLI, so :class:`Credential`
serialises with the camelCase keys that CLI expects (``refreshToken``,
``accessToken``, ``expiresAt``) while exposing snake_case attributes.
"""

from __future__ import annotations

import enum
import math
import os
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from claude_sdk_auth.exceptions import CredentialValidationError


# --- Credential ---


class Credential(BaseModel):
    """The persisted unit of authentication state.

    A credential is either entirely absent or fully valid: ``kind`` is the
    literal ``"oauth"``, both tokens are non-empty strings, and
    ``expires_at`` is a finite timestamp in milliseconds since the epoch.
    Unknown keys written by other tools are ignored on load.

    Example::

        cred = Credential(
            kind="oauth",
            refresh_token="rt",
            access_token="at",
            expires_at=1730000000000,
        )
        cred.to_document()
        # {"kind": "oauth", "refreshToken": "rt", "accessToken": "at", "expiresAt": 1730000000000}
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    kind: Literal["oauth"] = Field(description="Credential discriminator")
    refresh_token: str = Field(
        alias="refreshToken",
        min_length=1,
        strict=True,
        repr=False,
        description="Long-lived provider-issued refresh token",
    )
    access_token: str = Field(
        alias="accessToken",
        min_length=1,
        strict=True,
        repr=False,
        description="Short-lived provider-issued access token",
    )
    expires_at: int = Field(
        alias="expiresAt",
        description="Milliseconds since epoch after which access_token must not be used",
    )

    @field_validator("expires_at", mode="before")
    @classmethod
    def _finite_number(cls, value: Any) -> int:
        # bool is an int subclass; the external format never uses it.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("expiresAt must be a number")
        if not math.isfinite(value):
            raise ValueError("expiresAt must be finite")
        return int(value)

    def to_document(self) -> dict[str, Any]:
        """Return the external JSON representation (camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json")


def validate_credential(data: Any) -> Credential:
    """Validate *data* as a :class:`Credential`.

    Args:
        data: A decoded JSON value.

    Returns:
        The validated credential.

    Raises:
        CredentialValidationError: If *data* is not a well-formed credential.
    """
    try:
        return Credential.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise CredentialValidationError(f"Invalid credential: {problems}") from exc


def is_valid_credential(data: Any) -> bool:
    """Return ``True`` if *data* validates as a :class:`Credential`."""
    try:
        validate_credential(data)
    except CredentialValidationError:
        return False
    return True


# --- Enumerations ---


class StorageMode(str, enum.Enum):
    """How a :class:`Credential` is laid out inside the credentials file.

    ``WRAPPED`` nests the credential under the provider key
    (``{"anthropic": {...}}``), which is what the external CLI reads.
    ``UNWRAPPED`` stores the credential object at the top level. ``AUTO``
    picks ``WRAPPED`` for the shared default path and ``UNWRAPPED`` for any
    other path.
    """

    AUTO = "auto"
    WRAPPED = "wrapped"
    UNWRAPPED = "unwrapped"


class LoginMode(str, enum.Enum):
    """Provider-side authorization variant.

    ``MAX`` authorizes against claude.ai (Pro/Max subscriptions),
    ``CONSOLE`` against the developer console. Only the authorize endpoint
    differs; the query parameters are the same.
    """

    MAX = "max"
    CONSOLE = "console"


class TokenState(str, enum.Enum):
    """Lifecycle state of the stored credential from a caller's point of view."""

    NO_CREDENTIAL = "no_credential"
    VALID = "valid"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


# --- PKCE ---


class PKCESession(BaseModel):
    """Ephemeral verifier/challenge pair for one login attempt. Never persisted."""

    model_config = ConfigDict(frozen=True)

    verifier: str = Field(repr=False)
    challenge: str = Field(repr=False)


# --- Provider ---

DEFAULT_CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
DEFAULT_AUTHORIZE_URLS: dict[LoginMode, str] = {
    LoginMode.MAX: "https://claude.ai/oauth/authorize",
    LoginMode.CONSOLE: "https://console.anthropic.com/oauth/authorize",
}
DEFAULT_TOKEN_URL = "https://console.anthropic.com/v1/oauth/token"
DEFAULT_REDIRECT_URI = "https://console.anthropic.com/oauth/code/callback"
DEFAULT_SCOPES = ["org:create_api_key", "user:profile", "user:inference"]


class ProviderConfig(BaseModel):
    """Identity-provider endpoints and client registration.

    Defaults target Anthropic's public OAuth client. Environment overrides
    are applied by :func:`~claude_sdk_auth.config.load_provider_config`.
    """

    client_id: str = DEFAULT_CLIENT_ID
    authorize_urls: dict[LoginMode, str] = Field(
        default_factory=lambda: dict(DEFAULT_AUTHORIZE_URLS)
    )
    token_url: str = DEFAULT_TOKEN_URL
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))


# --- Options ---


class AuthOptions(BaseModel):
    """Options accepted by :class:`~claude_sdk_auth.auth.manager.Auth`.

    ``credentials_path`` of ``None`` means "use the environment override or
    the shared default path", resolved by
    :func:`~claude_sdk_auth.config.resolve_options`.
    """

    credentials_path: Optional[str] = Field(
        default=None, description="Credentials file; '~' expands to the home directory"
    )
    auto_refresh: bool = Field(
        default=True, description="Refresh stale tokens transparently in get_token()"
    )
    overwrite_existing: bool = Field(
        default=False, description="Allow a login to replace live credentials"
    )
    storage_mode: StorageMode = StorageMode.AUTO
    provider_key: str = Field(
        default="anthropic", description="Top-level key used by the wrapped layout"
    )

    @field_validator("credentials_path", mode="before")
    @classmethod
    def _fspath(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value
