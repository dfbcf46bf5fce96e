"""Asynchronous client for OAuth2 client-credentials protected endpoints.

This module provides :class:`AuthorizedClient`. It wraps
:class:`httpx.AsyncClient`, obtains a bearer token as soon as it is opened,
keeps the token fresh through a shared
:class:`~authorized_client.auth.credential_store.CredentialStore`, and
re-authenticates transparently when the API answers ``401``.

Only ``200`` counts as success. Any other status besides ``401`` is a
:class:`~authorized_client.exceptions.UnsupportedStatus` error.

See Also:
    :class:`~authorized_client.client.executor.RequestExecutor` for the retry
    state machine shared by every verb.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar, overload

import httpx

from authorized_client.auth.credential_store import CredentialStore
from authorized_client.auth.token_fetcher import TokenFetcher
from authorized_client.client.executor import RequestBuilder, RequestExecutor, Sleep
from authorized_client.client.response import build_get_request, build_post_request, encode_json_body
from authorized_client.exceptions import ClientNotConnected
from authorized_client.models import Credentials, ResponseKind, Settings, parse_endpoint_url

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuthorizedClient:
    """Client for endpoints protected by the OAuth2 client-credentials grant.

    Settings are validated on construction; the first token is fetched by
    :meth:`open` (or on entering ``async with``). A failure there usually
    means the settings are wrong.

    Args:
        settings: Connection settings for the authorization server.
        http_client: Optional pre-configured :class:`httpx.AsyncClient`,
            used for both the token endpoint and protected endpoints. When
            omitted the client creates and owns one.
        timeout: Timeout in seconds for the owned httpx client.
        clock: Returns the current aware UTC time. Tests inject a fake.
        sleep: Awaitable used for retry backoff. Tests inject a recorder.

    Raises:
        ConfigError: If ``settings.token_url`` is not an absolute http(s) URL.

    Example::

        async with AuthorizedClient(settings) as client:
            info = await client.get("https://api.example.com/info")
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        parse_endpoint_url(settings.token_url, "token_url")
        self._settings = settings
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock
        self._sleep = sleep
        self._fetcher = TokenFetcher(settings, self._http_client, clock=clock)
        self._store: Optional[CredentialStore] = None
        self._executor: Optional[RequestExecutor] = None

    @classmethod
    async def connect(cls, settings: Settings, **kwargs: Any) -> AuthorizedClient:
        """Create a client and immediately fetch its first bearer token.

        Args:
            settings: Connection settings.
            **kwargs: Forwarded to the constructor.

        Raises:
            ConfigError: If the settings are malformed.
            TokenFetchError: If the first token exchange fails.
        """
        client = cls(settings, **kwargs)
        try:
            await client.open()
        except BaseException:
            await client.aclose()
            raise
        return client

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def open(self) -> None:
        """Fetch the first bearer token. Calling it again is a no-op."""
        if self._store is not None:
            return
        logger.debug("Initial connect to '%s'", self._settings.token_url)
        store = await CredentialStore.create(self._fetcher, clock=self._clock)
        logger.debug("Successfully connected: got bearer token from %s", self._settings.token_url)
        self._store = store
        self._executor = RequestExecutor(store, self._http_client, sleep=self._sleep)

    async def aclose(self) -> None:
        """Close the owned httpx client. Caller-supplied clients stay open.

        Requests made afterwards raise :class:`ClientNotConnected`.
        """
        self._store = None
        self._executor = None
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> AuthorizedClient:
        try:
            await self.open()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    @property
    def settings(self) -> Settings:
        return self._settings

    async def credentials(self) -> Credentials:
        """Return the currently cached credentials, refreshing them if expired."""
        store = self._require_store()
        await store.ensure_valid()
        return await store.read()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    @overload
    async def get(self, url: str | httpx.URL) -> Any: ...

    @overload
    async def get(self, url: str | httpx.URL, model: type[T]) -> T: ...

    async def get(self, url: str | httpx.URL, model: Optional[Any] = None) -> Any:
        """Send a ``GET`` and decode the ``200`` body as JSON.

        Args:
            url: Absolute URL of the protected endpoint.
            model: Optional type to validate the decoded JSON into.

        See :meth:`request` for the error contract.
        """
        target = parse_endpoint_url(url)
        return await self.request(lambda: build_get_request(target), ResponseKind.JSON, model)

    async def get_text(self, url: str | httpx.URL) -> str:
        """Send a ``GET`` and return the ``200`` body as text."""
        target = parse_endpoint_url(url)
        return await self.request(lambda: build_get_request(target), ResponseKind.TEXT)

    @overload
    async def post(self, url: str | httpx.URL, body: Any) -> Any: ...

    @overload
    async def post(self, url: str | httpx.URL, body: Any, model: type[T]) -> T: ...

    async def post(self, url: str | httpx.URL, body: Any, model: Optional[Any] = None) -> Any:
        """Send *body* as JSON with ``POST`` and decode the ``200`` body as JSON."""
        return await self.request(self._post_builder(url, body), ResponseKind.JSON, model)

    async def post_text(self, url: str | httpx.URL, body: Any) -> str:
        """Send *body* as JSON with ``POST`` and return the ``200`` body as text."""
        return await self.request(self._post_builder(url, body), ResponseKind.TEXT)

    async def post_ignore(self, url: str | httpx.URL, body: Any) -> None:
        """Send *body* as JSON with ``POST`` and discard the ``200`` body."""
        await self.request(self._post_builder(url, body), ResponseKind.IGNORE)

    async def request(
        self,
        build_request: RequestBuilder,
        kind: ResponseKind = ResponseKind.JSON,
        model: Optional[Any] = None,
    ) -> Any:
        """Send an authenticated request built by *build_request*.

        A bearer token is attached automatically. If it is rejected with
        ``401`` a new token is fetched and the request is retried, up to
        three times.

        Args:
            build_request: Returns a fresh :class:`httpx.Request` per attempt.
            kind: How to return the ``200`` body.
            model: Optional target type for ``JSON`` bodies.

        Raises:
            ClientNotConnected: If :meth:`open` has not completed.
            TokenFetchError: If fetching a token fails.
            AuthExhausted: If every attempt was answered with ``401``.
            UnsupportedStatus: On any status other than ``200`` or ``401``.
            TransportError: On network errors or timeouts.
            SerializationError: If a body cannot be encoded or decoded.
        """
        self._require_store()
        assert self._executor is not None
        return await self._executor.execute(build_request, kind, model)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _post_builder(self, url: str | httpx.URL, body: Any) -> RequestBuilder:
        target = parse_endpoint_url(url)
        content = encode_json_body(body)
        return lambda: build_post_request(target, content)

    def _require_store(self) -> CredentialStore:
        if self._store is None:
            raise ClientNotConnected(
                "Client not connected -- call 'await client.open()' or use 'async with'"
            )
        return self._store
