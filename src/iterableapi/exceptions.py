"""Exception hierarchy for iterableapi.

All exceptions inherit from :class:`IterableError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`iterableapi.exit_codes`. The CLI entry point catches
``IterableError`` and exits with that code.

Inside the library, the HTTP-level errors (:class:`AuthError`,
:class:`NotFoundError`, :class:`ServerError`, :class:`ConnectionError_`)
are raised by :class:`~iterableapi.client.AsyncClient` and absorbed by
:class:`~iterableapi.service.IterableService`, which logs them and returns
an empty result. :class:`InvalidUsageError` and :class:`ConfigError` signal
programmer or configuration mistakes and always propagate.

Subclass hierarchy::

    IterableError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
"""

from iterableapi.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class IterableError(Exception):
    """Base exception for all iterableapi errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(IterableError):
    """Raised when a caller passes arguments of the wrong type or shape."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(IterableError):
    """Raised when the API rejects the API key (HTTP 401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(IterableError):
    """Raised when the API returns HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(IterableError):
    """Raised for HTTP 5xx responses and 4xx statuses without a dedicated class."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(IterableError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(IterableError):
    """Raised for configuration problems (missing API key, invalid JSON, bad cache limits)."""

    exit_code = EXIT_GENERIC_FAILURE
