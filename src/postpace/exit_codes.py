"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~postpace.exceptions.PostpaceError` subclass.
Per-post failures never change the exit code; only failures that stop the
run before the posting loop do.

Example::

    $ postpace run
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no token could be obtained
"""

EXIT_SUCCESS = 0
"""The run completed (individual posts may still have failed)."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or a precondition was not met."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The authorization flow failed and no access token was obtained."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""
