"""Pydantic models shared across authorized_client.

**Configuration** -- :class:`Settings`, the immutable connection settings for
the authorization server.

**Token state** -- :class:`TokenResponse` is the wire shape returned by the
token endpoint; :class:`Credentials` is the value cached by
:class:`~authorized_client.auth.credential_store.CredentialStore`.

**Response handling** -- :class:`ResponseKind` is the closed set of ways a
successful protected-endpoint response can be turned into a result.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from authorized_client.exceptions import ConfigError


# --- Settings ---


class Settings(BaseModel):
    """Client-credentials connection settings.

    Read-only after construction and shared by reference with every token
    exchange.

    Example::

        Settings(
            client_id="my-service",
            client_secret="s3cret",
            token_url="https://auth.example.com/oauth/token",
            scopes=["profile", "email"],
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="OAuth2 client identifier")
    client_secret: str = Field(repr=False, description="OAuth2 client secret")
    token_url: str = Field(description="Token endpoint of the authorization server")
    scopes: tuple[str, ...] = Field(
        default=(),
        description="Scopes requested with every exchange (order is not significant)",
    )
    auth_method: Literal["client_secret_basic", "client_secret_post"] = Field(
        default="client_secret_basic",
        description="How the client authenticates to the token endpoint: "
        "HTTP Basic header or form body fields",
    )


# --- Token state ---


class TokenResponse(BaseModel):
    """Successful token endpoint response (:rfc:`6749` section 5.1).

    Unknown fields are kept in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    expires_in: Optional[float] = Field(default=None, ge=0)
    token_type: str = "Bearer"
    scope: Optional[str] = None


class Credentials(BaseModel):
    """The current access token and the instant after which it is invalid.

    Frozen: a refresh replaces the whole value, so a reader always sees a
    matching ``access_token`` / ``expires_at`` pair.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(repr=False)
    expires_at: datetime
    token_type: str = "Bearer"
    scope: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once *now* is past :attr:`expires_at`."""
        return self.expires_at < now


def utcnow() -> datetime:
    """Default clock: the current timezone-aware UTC time."""
    return datetime.now(timezone.utc)


# --- Response handling ---


class ResponseKind(str, enum.Enum):
    """How a ``200`` response body is handed back to the caller."""

    JSON = "json"
    TEXT = "text"
    IGNORE = "ignore"


# --- URL validation ---


def parse_endpoint_url(url: str | httpx.URL, what: str = "endpoint") -> httpx.URL:
    """Parse *url* and make sure it is an absolute ``http``/``https`` URL.

    Args:
        url: The URL to check.
        what: Name used in the error message (e.g. ``"token_url"``).

    Returns:
        The parsed :class:`httpx.URL`.

    Raises:
        ConfigError: If the URL cannot be parsed, has no host, or uses
            another scheme.
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigError(f"Invalid {what} URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(
            f"Invalid {what} URL {url!r}: expected an absolute http(s) URL"
        )
    return parsed
