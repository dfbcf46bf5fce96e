"""Authenticated request execution with bounded re-authentication.

:class:`RequestExecutor` drives a single logical request through the
following states::

    Authenticating -> Sending -> Success
                              -> Unauthorized -> (Backoff ->) Authenticating
                              -> HardFailure

Only ``401`` leads back to authentication. The unauthorized counter lives in
:meth:`RequestExecutor.execute` and starts at zero for every call. After
``MAX_RETRY_COUNT`` retries a further ``401`` raises
:class:`~authorized_client.exceptions.AuthExhausted`, so one logical request
sends at most ``MAX_RETRY_COUNT + 1`` times.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from authorized_client.auth.credential_store import CredentialStore
from authorized_client.client.response import extract_response
from authorized_client.exceptions import AuthExhausted, TransportError, UnsupportedStatus
from authorized_client.models import ResponseKind

logger = logging.getLogger(__name__)

MAX_RETRY_COUNT = 3
"""Retries after a ``401`` before giving up."""

BACKOFF_STEP = 0.5
"""Seconds of linear backoff per retry, starting with the second retry."""

RequestBuilder = Callable[[], httpx.Request]
Sleep = Callable[[float], Awaitable[Any]]


def backoff_delay(retry: int) -> float:
    """Seconds to wait before the *retry*-th retry (1-based).

    The first retry goes out immediately; later ones wait
    ``BACKOFF_STEP * retry`` so the authorization server is not hammered.
    """
    if retry <= 1:
        return 0.0
    return BACKOFF_STEP * retry


class RequestExecutor:
    """Attach bearer tokens, send requests and react to the status code.

    Args:
        store: The shared credential cache.
        http_client: Client used to send protected-endpoint requests.
        sleep: Awaitable sleep used for backoff; :func:`asyncio.sleep` by
            default.
    """

    def __init__(
        self,
        store: CredentialStore,
        http_client: httpx.AsyncClient,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._store = store
        self._http_client = http_client
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        build_request: RequestBuilder,
        kind: ResponseKind = ResponseKind.JSON,
        model: Optional[Any] = None,
    ) -> Any:
        """Run one logical request.

        Args:
            build_request: Returns a fresh request for every attempt.
            kind: How a ``200`` body is returned.
            model: Optional target type for ``JSON`` bodies.

        Returns:
            The extracted response value.

        Raises:
            TokenFetchError: If (re-)authentication fails. Never retried.
            AuthExhausted: After ``MAX_RETRY_COUNT + 1`` consecutive ``401``.
            UnsupportedStatus: On any status other than ``200``/``401``.
            TransportError: On network failures or timeouts.
            SerializationError: If the body cannot be decoded.
        """
        await self._store.ensure_valid()

        unauthorized_retries = 0
        while True:
            response = await self._send(build_request)

            if response.status_code == httpx.codes.OK:
                return extract_response(response, kind, model)

            if response.status_code != httpx.codes.UNAUTHORIZED:
                raise UnsupportedStatus(response.status_code, response.text[:200])

            if unauthorized_retries == MAX_RETRY_COUNT:
                logger.debug("Giving up after %d unauthorized retries", MAX_RETRY_COUNT)
                raise AuthExhausted(MAX_RETRY_COUNT + 1)

            unauthorized_retries += 1
            logger.debug("Unauthorized retry: %d", unauthorized_retries)

            delay = backoff_delay(unauthorized_retries)
            if delay:
                logger.debug("Sleeping for %.1fs before retrying", delay)
                await self._sleep(delay)

            await self._store.force_refresh()

    async def _send(self, build_request: RequestBuilder) -> httpx.Response:
        request = build_request()
        # Read per attempt: a refresh may have happened since the last one.
        credentials = await self._store.read()
        request.headers["Authorization"] = f"Bearer {credentials.access_token}"

        logger.debug("%s %s", request.method, request.url)
        try:
            return await self._http_client.send(request)
        except httpx.HTTPError as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}") from exc
