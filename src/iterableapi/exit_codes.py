"""Numeric process exit codes used by the ``iterable`` CLI.

Each constant maps to an error category and is referenced by the
corresponding :class:`~iterableapi.exceptions.IterableError` subclass, so
shell scripts can tell an auth failure from a missing user without parsing
stderr.

Example::

    $ iterable users get --email nobody@example.com
    $ echo $?
    4   # EXIT_NOT_FOUND -- no such user
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the API returned nothing usable."""

EXIT_INVALID_USAGE = 2
"""The command or library call was given invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The API key was rejected (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API returned an HTTP error status other than 401/403/404."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
