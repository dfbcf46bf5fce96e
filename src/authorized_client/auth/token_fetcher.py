"""OAuth2 Client Credentials token exchange.

This module provides :class:`TokenFetcher`, which performs the
non-interactive Client Credentials grant (:rfc:`6749` section 4.4): it
exchanges the configured ``client_id`` and ``client_secret`` for an access
token at ``token_url`` and turns the answer into
:class:`~authorized_client.models.Credentials`.

The fetcher is stateless. Caching and refresh decisions belong to
:class:`~authorized_client.auth.credential_store.CredentialStore`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from authorized_client.exceptions import ExchangeFailed, ExpiryOverflow, MissingExpiry
from authorized_client.models import Credentials, Settings, TokenResponse, utcnow

logger = logging.getLogger(__name__)


class TokenFetcher:
    """Exchange client credentials for a bearer token.

    Args:
        settings: Immutable connection settings.
        http_client: The :class:`httpx.AsyncClient` used for the exchange.
            Its timeout applies to the token request.
        clock: Returns the current aware UTC time. Used to turn
            ``expires_in`` into an absolute ``expires_at``.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._clock = clock or utcnow

    @property
    def settings(self) -> Settings:
        return self._settings

    async def fetch(self) -> Credentials:
        """Perform one client-credentials exchange.

        Returns:
            Fresh :class:`~authorized_client.models.Credentials` whose
            ``expires_at`` is ``now + expires_in``.

        Raises:
            ExchangeFailed: On network errors, non-2xx answers, bodies that
                are not JSON, or bodies without ``access_token``.
            MissingExpiry: If the response omits ``expires_in``.
            ExpiryOverflow: If ``now + expires_in`` overflows ``datetime``.
        """
        settings = self._settings
        logger.debug("Preparing client credentials exchange with %s", settings.token_url)

        data, auth = self._build_request_parts()
        try:
            response = await self._http_client.post(
                settings.token_url,
                data=data,
                auth=auth,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise ExchangeFailed(f"Token request to {settings.token_url} failed: {exc}") from exc

        if response.is_error:
            raise ExchangeFailed(_describe_error_response(response))

        token = _parse_token_response(response)
        credentials = self._to_credentials(token)
        logger.debug(
            "Exchanged client credentials for a %s token expiring at %s",
            credentials.token_type,
            credentials.expires_at.isoformat(),
        )
        return credentials

    def _build_request_parts(self) -> tuple[dict[str, str], Optional[httpx.BasicAuth]]:
        """Return the form body and optional Basic auth for the exchange."""
        settings = self._settings
        data: dict[str, str] = {"grant_type": "client_credentials"}
        if settings.scopes:
            data["scope"] = " ".join(settings.scopes)

        if settings.auth_method == "client_secret_post":
            data["client_id"] = settings.client_id
            data["client_secret"] = settings.client_secret
            return data, None

        # RFC 6749 section 2.3.1: both parts are form-encoded before Basic.
        auth = httpx.BasicAuth(
            quote(settings.client_id, safe=""),
            quote(settings.client_secret, safe=""),
        )
        return data, auth

    def _to_credentials(self, token: TokenResponse) -> Credentials:
        if token.expires_in is None:
            raise MissingExpiry("Expires in is missing in token response")
        try:
            expires_at = self._clock() + timedelta(seconds=token.expires_in)
        except OverflowError as exc:
            raise ExpiryOverflow(
                f"expires_in={token.expires_in} is so long it caused an overflow"
            ) from exc
        return Credentials(
            access_token=token.access_token,
            expires_at=expires_at,
            token_type=token.token_type,
            scope=token.scope,
        )


def _parse_token_response(response: httpx.Response) -> TokenResponse:
    try:
        payload: Any = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ExchangeFailed(f"Token response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ExchangeFailed("Token response is not a JSON object")
    try:
        return TokenResponse.model_validate(payload)
    except ValidationError as exc:
        raise ExchangeFailed(f"Malformed token response: {exc}") from exc


def _describe_error_response(response: httpx.Response) -> str:
    """Build an error message, using the OAuth2 error fields when present."""
    message = f"Token request failed with status {response.status_code}"
    try:
        detail = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = response.text[:200] if response.text else ""
        return f"{message}: {text}" if text else message

    if isinstance(detail, dict) and "error" in detail:
        message = f"{message}: {detail['error']}"
        if detail.get("error_description"):
            message = f"{message} ({detail['error_description']})"
    return message
