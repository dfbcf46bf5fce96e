"""authorized_client -- call REST endpoints protected by OAuth2 client credentials.

The client exchanges a ``client_id`` / ``client_secret`` pair for a bearer
token, attaches it to every request, refreshes it when it expires, and
re-authenticates when the API answers ``401``.

Example::

    from authorized_client import AuthorizedClient, Settings

    settings = Settings(
        client_id="xxxxxxxxxx",
        client_secret="xxxxxxxxxx",
        token_url="https://authorization-server.com/token",
        scopes=["profile", "email"],
    )

    async with AuthorizedClient(settings) as client:
        info = await client.get("https://protected-endpoint.com/info")

Modules:
    client: :class:`AuthorizedClient` and the retry loop.
    auth: Token exchange and the shared credential cache.
    models: Pydantic models shared across the package.
    config: Loading :class:`Settings` from JSON files and the environment.
    exceptions: Exception hierarchy with exit-code mapping.
    app: The ``authorized-client`` developer CLI.
"""

from authorized_client.client import AuthorizedClient
from authorized_client.models import Credentials, ResponseKind, Settings

__version__ = "0.1.0"

__all__ = ["AuthorizedClient", "Credentials", "ResponseKind", "Settings", "__version__"]
