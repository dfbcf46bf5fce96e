"""Shared in-memory credential cache with single-flight refresh.

:class:`CredentialStore` owns the one :class:`~authorized_client.models.Credentials`
value of a client. Every read and write goes through a
:class:`~authorized_client.auth.rwlock.ReadWriteLock`: requests read the token
under shared access, refreshes swap in a new value under exclusive access.

Refreshing on expiry uses double-checked locking. Many tasks can observe an
expired token at the same time; only the first one to get exclusive access
talks to the token endpoint, the rest re-check and find a valid token.

See Also:
    :class:`~authorized_client.auth.token_fetcher.TokenFetcher` -- performs
    the actual exchange.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from authorized_client.auth.rwlock import ReadWriteLock
from authorized_client.auth.token_fetcher import TokenFetcher
from authorized_client.models import Credentials, utcnow

logger = logging.getLogger(__name__)


class CredentialStore:
    """Concurrency-safe holder of the current credentials.

    Args:
        fetcher: Used for every refresh.
        credentials: The initial credentials.
        clock: Returns the current aware UTC time; defaults to
            :func:`~authorized_client.models.utcnow`.

    Example::

        store = await CredentialStore.create(fetcher)
        await store.ensure_valid()
        token = (await store.read()).access_token
    """

    def __init__(
        self,
        fetcher: TokenFetcher,
        credentials: Credentials,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._fetcher = fetcher
        self._credentials = credentials
        self._clock = clock or utcnow
        self._lock = ReadWriteLock()

    @classmethod
    async def create(
        cls,
        fetcher: TokenFetcher,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> CredentialStore:
        """Fetch the first token and return a store holding it.

        Raises:
            TokenFetchError: If the initial exchange fails.
        """
        credentials = await fetcher.fetch()
        return cls(fetcher, credentials, clock=clock)

    @property
    def expires_at(self) -> datetime:
        """Expiry of the credentials currently held (unlocked snapshot)."""
        return self._credentials.expires_at

    async def read(self) -> Credentials:
        """Return the current credentials.

        Waits only while a refresh is in flight.
        """
        async with self._lock.read():
            return self._credentials

    async def ensure_valid(self) -> None:
        """Refresh the credentials if they have expired.

        Raises:
            TokenFetchError: If a refresh was needed and failed.
        """
        async with self._lock.read():
            expired = self._credentials.is_expired(self._clock())
        if not expired:
            return

        logger.debug("Credentials appear to be expired, re-checking under exclusive access")
        async with self._lock.write():
            # Another task may have refreshed while we waited.
            if self._credentials.is_expired(self._clock()):
                logger.debug("Credentials are expired, refreshing the authentication")
                await self._refresh_locked()

    async def force_refresh(self) -> None:
        """Fetch new credentials even if the cached ones look valid.

        Used after the server rejected a token with ``401``.

        Raises:
            TokenFetchError: If the exchange fails. The old credentials stay
                in place.
        """
        logger.debug("Force refreshing bearer token")
        async with self._lock.write():
            await self._refresh_locked()

    async def _refresh_locked(self) -> None:
        """Fetch and swap in new credentials. Caller holds the write lock."""
        credentials = await self._fetcher.fetch()
        self._credentials = credentials
        logger.info("Refreshed bearer token, valid until %s", credentials.expires_at.isoformat())
