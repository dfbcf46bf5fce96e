"""Token acquisition and caching.

Classes:
    :class:`TokenFetcher` -- one OAuth2 client-credentials exchange.
    :class:`CredentialStore` -- the shared, refresh-on-expiry token cache.
    :class:`ReadWriteLock` -- the asyncio shared/exclusive lock guarding it.
"""

from authorized_client.auth.credential_store import CredentialStore
from authorized_client.auth.rwlock import ReadWriteLock
from authorized_client.auth.token_fetcher import TokenFetcher

__all__ = ["CredentialStore", "ReadWriteLock", "TokenFetcher"]
