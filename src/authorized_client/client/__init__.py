"""HTTP client module for authorized_client.

Classes:
    :class:`AuthorizedClient` -- async client for client-credentials
    protected endpoints, backed by :class:`httpx.AsyncClient`.
    :class:`RequestExecutor` -- the per-request authenticate/send/retry loop.

Example::

    from authorized_client.client import AuthorizedClient

    async with AuthorizedClient(settings) as client:
        data = await client.get("https://api.example.com/users")
"""

from authorized_client.client.async_client import AuthorizedClient
from authorized_client.client.executor import MAX_RETRY_COUNT, RequestExecutor

__all__ = ["AuthorizedClient", "RequestExecutor", "MAX_RETRY_COUNT"]
