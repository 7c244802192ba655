"""Exception hierarchy for postpace.

All exceptions inherit from :class:`PostpaceError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`postpace.exit_codes`.
The top-level error handler in :func:`postpace.app.main` catches
``PostpaceError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    PostpaceError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    |   +-- CallbackError   (exit 3)
    +-- ConfigError         (exit 1)

Failures of a single post are not exceptions: the posting loop records
them and carries on.
"""

from postpace.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class PostpaceError(Exception):
    """Base exception for all postpace errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PostpaceError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(PostpaceError):
    """Raised when the authorization flow cannot produce an access token."""

    exit_code = EXIT_AUTH_FAILURE


class CallbackError(AuthError):
    """Raised when the local callback listener cannot be started."""


class ConfigError(PostpaceError):
    """Raised for missing configuration values or an unreadable posts file."""

    exit_code = EXIT_GENERIC_FAILURE
