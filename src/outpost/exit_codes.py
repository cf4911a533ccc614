"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~outpost.exceptions.OutpostError` subclass or by a
CLI command.
Cron jobs and deploy hooks that run ``outpost status`` can inspect the exit
code to determine the failure class without parsing stderr.

Example::

    $ outpost status
    $ echo $?
    5   # EXIT_HTTP_ERROR -- the endpoint answered with an unclassified status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_CACHE_ERROR = 3
"""The response cache could not be read or written."""

EXIT_INVALID_RESPONSE = 4
"""The check-in endpoint returned a body that could not be decoded."""

EXIT_HTTP_ERROR = 5
"""The check-in endpoint rejected the request with an unclassified HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
