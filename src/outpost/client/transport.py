"""Synchronous HTTP transport for the check-in call.

This module provides :class:`HttpTransport`, a thin wrapper around
:class:`httpx.Client` that performs exactly one POST per call and turns the
outcome into one of three shapes:

- a :class:`TransportResponse` for a successful status,
- :class:`~outpost.exceptions.ConnectFailure` when no response arrived
  (connection refused, DNS failure, timeout),
- :class:`~outpost.exceptions.HTTPFailure` when a response arrived with a
  failing status (``>= 400``, or ``>= 300`` with ``fail_on_redirect``).

Each call makes a single attempt; there is no retry loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import httpx

from outpost.exceptions import ConnectFailure, HTTPFailure

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """A successful response: status code, multi-valued headers, raw body.

    Header names are lower-cased and map to every value received for them.
    """

    status_code: int
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header *name*, or ``None`` when absent."""
        values = self.headers.get(name.lower())
        return values[0] if values else None


class Transport(Protocol):
    """The network contract :class:`~outpost.checkin.CheckInClient` depends on."""

    def post(
        self,
        url: str,
        headers: dict[str, str],
        json_body: Any,
        timeout: float,
    ) -> TransportResponse: ...


def _collect_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    """Group ``headers`` into a lower-cased name -> values mapping."""
    collected: dict[str, list[str]] = {}
    for name, value in headers.multi_items():
        collected.setdefault(name.lower(), []).append(value)
    return collected


class HttpTransport:
    """Blocking POST transport backed by :class:`httpx.Client`.

    Args:
        verify_ssl: Verify TLS certificates of the endpoint.
        fail_on_redirect: Treat 3xx responses as failures. Redirects are
            never followed either way.
        client: Pre-built :class:`httpx.Client` to use instead of creating
            one. Tests pass a client wired to :class:`httpx.MockTransport`.

    Example::

        with HttpTransport() as transport:
            response = transport.post(url, {"accept": "application/json"}, {"key": "x"}, 5)
    """

    def __init__(
        self,
        verify_ssl: bool = True,
        fail_on_redirect: bool = False,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._fail_on_redirect = fail_on_redirect
        self._owns_client = client is None
        self._client = client or httpx.Client(verify=verify_ssl, follow_redirects=False)

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def post(
        self,
        url: str,
        headers: dict[str, str],
        json_body: Any,
        timeout: float,
    ) -> TransportResponse:
        """Send one POST request with a JSON body.

        Args:
            url: Absolute endpoint URL.
            headers: Request headers.
            json_body: JSON-serialisable body.
            timeout: Overall timeout in seconds (connect, read, write, pool).

        Returns:
            The :class:`TransportResponse` for a non-failing status.

        Raises:
            ConnectFailure: On network / timeout errors.
            HTTPFailure: On a failing status code.
        """
        logger.debug("POST %s (timeout %ss)", url, timeout)
        try:
            response = self._client.post(
                url, headers=headers, json=json_body, timeout=timeout,
            )
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ConnectFailure(f"Connection to {url} failed: {exc}") from exc

        status = response.status_code
        collected = _collect_headers(response.headers)
        threshold = 300 if self._fail_on_redirect else 400
        if status >= threshold:
            raise HTTPFailure(status, collected, response.content)

        return TransportResponse(status_code=status, headers=collected, body=response.content)
