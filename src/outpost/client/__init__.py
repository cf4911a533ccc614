"""HTTP client module for outpost.

Provides the transport used for the check-in POST and the bridge that
renders check-in results through the output system.

Classes:
    :class:`HttpTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`TransportResponse` -- status, headers and body of a successful call.
    :class:`Transport` -- the protocol :class:`~outpost.checkin.CheckInClient`
    depends on.

Example::

    from outpost.client import HttpTransport

    with HttpTransport(verify_ssl=True) as transport:
        resp = transport.post(url, {"accept": "application/json"}, payload, 5)
"""

from outpost.client.transport import HttpTransport, Transport, TransportResponse

__all__ = ["HttpTransport", "Transport", "TransportResponse"]
