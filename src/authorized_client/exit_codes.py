"""Numeric process exit codes used by the ``authorized-client`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~authorized_client.exceptions.AuthorizedClientError`
subclass. Shell wrappers can inspect the exit code to determine the failure
class without parsing stderr.

Example::

    $ authorized-client get https://api.example.com/me
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the token endpoint or the API rejected us
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or configuration."""

EXIT_AUTH_FAILURE = 3
"""Token acquisition failed or the protected endpoint kept answering 401."""

EXIT_SERVER_ERROR = 5
"""The protected endpoint answered with a status other than 200 or 401."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SERIALIZATION_ERROR = 8
"""A request body could not be encoded or a response body could not be decoded."""
