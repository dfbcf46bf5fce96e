"""Exception hierarchy for authorized_client.

All exceptions inherit from :class:`AuthorizedClientError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`authorized_client.exit_codes`. Library callers catch the typed
subclasses; the CLI entry point catches the base class and exits with the
matching code.

Subclass hierarchy::

    AuthorizedClientError     (exit 1)
    +-- ConfigError           (exit 2)
    +-- ClientNotConnected    (exit 1)
    +-- TokenFetchError       (exit 3)
    |   +-- ExchangeFailed
    |   +-- MissingExpiry
    |   +-- ExpiryOverflow
    +-- AuthExhausted         (exit 3)
    +-- UnsupportedStatus     (exit 5)
    +-- TransportError        (exit 6)
    +-- SerializationError    (exit 8)
"""

from __future__ import annotations

from authorized_client.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERIALIZATION_ERROR,
    EXIT_SERVER_ERROR,
)


class AuthorizedClientError(Exception):
    """Base exception for all authorized_client errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(AuthorizedClientError):
    """Raised for malformed settings or endpoint URLs, before any network call."""

    exit_code = EXIT_INVALID_USAGE


class ClientNotConnected(AuthorizedClientError):
    """Raised when a request is issued before the client fetched its first token."""


class TokenFetchError(AuthorizedClientError):
    """Base class for failures of the client-credentials token exchange."""

    exit_code = EXIT_AUTH_FAILURE


class ExchangeFailed(TokenFetchError):
    """Raised on transport or protocol failures talking to the token endpoint."""


class MissingExpiry(TokenFetchError):
    """Raised when the token response carries no ``expires_in``."""


class ExpiryOverflow(TokenFetchError):
    """Raised when ``now + expires_in`` cannot be represented as a datetime."""


class AuthExhausted(AuthorizedClientError):
    """Raised when the protected endpoint keeps answering 401 after every retry.

    Args:
        attempts: Total number of send attempts that were made.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, attempts: int):
        super().__init__(
            f"Failed to authenticate after {attempts} attempts "
            f"({attempts - 1} retries)"
        )
        self.attempts = attempts


class UnsupportedStatus(AuthorizedClientError):
    """Raised when the protected endpoint answers with anything but 200 or 401.

    Args:
        status_code: The HTTP status received.
        body: A short excerpt of the response body, for diagnostics.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, body: str = ""):
        message = f"Unsupported status code (CODE={status_code})"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransportError(AuthorizedClientError):
    """Raised on network failures talking to the protected endpoint.

    Timeouts imposed by the underlying httpx client surface as this error too.
    """

    exit_code = EXIT_CONNECTION_ERROR


class SerializationError(AuthorizedClientError):
    """Raised when a request body cannot be encoded or a response cannot be decoded."""

    exit_code = EXIT_SERIALIZATION_ERROR
