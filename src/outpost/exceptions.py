"""Exception hierarchy for outpost.

All exceptions inherit from :class:`OutpostError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`outpost.exit_codes`.
The top-level error handler in :func:`outpost.app.main` catches
``OutpostError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    OutpostError (exit 1)
    +-- ConfigError         (exit 1)
    +-- CacheStoreError     (exit 3)
    +-- ResponseDecodeError (exit 4)
    +-- TransportError      (exit 1)
        +-- ConnectFailure  (exit 6)
        +-- HTTPFailure     (exit 5)

Only :class:`ConnectFailure` and :class:`HTTPFailure` are ever absorbed by
:class:`~outpost.checkin.CheckInClient`; everything else reaches the caller.
"""

from __future__ import annotations

from typing import Optional

from outpost.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INVALID_RESPONSE,
)


class OutpostError(Exception):
    """Base exception for all outpost errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`outpost.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(OutpostError):
    """Raised for configuration problems (invalid JSON, bad license key sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheStoreError(OutpostError):
    """Raised when the underlying response cache cannot be read or written."""

    exit_code = EXIT_CACHE_ERROR


class ResponseDecodeError(OutpostError):
    """Raised when a 2xx check-in response body is not a JSON object."""

    exit_code = EXIT_INVALID_RESPONSE


class TransportError(OutpostError):
    """Base class for failures raised by a check-in transport."""


class ConnectFailure(TransportError):
    """Raised when no response was received at all (timeout, DNS, refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class HTTPFailure(TransportError):
    """Raised when the endpoint answered with a failing HTTP status.

    Args:
        status_code: The HTTP status code of the response.
        headers: Response headers, each name mapped to all of its values.
            Names are lower-cased.
        body: The raw response body.
        message: Optional message; defaults to ``"HTTP <status>"``.
    """

    exit_code = EXIT_HTTP_ERROR

    def __init__(
        self,
        status_code: int,
        headers: Optional[dict[str, list[str]]] = None,
        body: bytes = b"",
        message: Optional[str] = None,
    ):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code
        self.headers = headers or {}
        self.body = body

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header *name*, or ``None`` when absent."""
        values = self.headers.get(name.lower())
        return values[0] if values else None
