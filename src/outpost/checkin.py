"""Caching check-in client.

:class:`CheckInClient` sends the installation payload to the check-in
endpoint and caches the classified outcome under a single well-known key.
A cached entry is reused only while it is fresh and was obtained for the
exact payload about to be sent; otherwise the client goes to the network and
overwrites the entry.

Outcome classification::

    connect failure  -> CheckInServerError       5 minutes
    HTTP 2xx         -> CheckInSuccess           1 hour
    HTTP 422         -> CheckInValidationError   1 hour
    HTTP 429         -> CheckInRateLimited       Retry-After
    HTTP 5xx         -> CheckInServerError       5 minutes
    anything else    -> HTTPFailure propagates (3xx included)

Concurrent callers racing on a cold cache may both call the endpoint; the
later cache write wins.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Iterator, Optional

from outpost.cache import ResponseCache, ResultStore
from outpost.client.transport import HttpTransport, Transport
from outpost.config import resolve_cache_dir
from outpost.exceptions import (
    CacheStoreError,
    ConnectFailure,
    HTTPFailure,
    ResponseDecodeError,
)
from outpost.models import (
    DEFAULT_ENDPOINT,
    CachedEntry,
    CheckInRateLimited,
    CheckInRequest,
    CheckInResult,
    CheckInServerError,
    CheckInSuccess,
    CheckInValidationError,
    GlobalConfig,
)
from outpost.payload import PayloadBuilder

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5
CACHE_KEY = "outpost.response"

SUCCESS_TTL = 3600
VALIDATION_TTL = 3600
SERVER_ERROR_TTL = 300


def _json_object(body: bytes) -> dict[str, Any]:
    """Decode *body* as a JSON object; an empty body decodes to ``{}``."""
    if not body.strip():
        return {}
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ResponseDecodeError(f"Check-in response is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ResponseDecodeError(
            f"Check-in response is a JSON {type(data).__name__}, expected an object"
        )
    return data


def _retry_after_seconds(value: Optional[str], now: float) -> Optional[float]:
    """Parse a ``Retry-After`` value (delta-seconds or HTTP-date)."""
    if value is None:
        return None
    value = value.strip()
    try:
        return float(max(int(value), 0))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(when.timestamp() - now, 0.0)


class CheckInClient:
    """Report the installation to the check-in endpoint, with caching.

    All collaborators are injected so that their lifecycles stay with the
    caller; the client never closes them.

    Args:
        transport: Performs the outbound POST.
        cache: Stores :class:`~outpost.models.CachedEntry` values.
        payload_builder: Produces the request payload.
        endpoint: Check-in endpoint URL.
        timeout: Request timeout in seconds.
        clock: Returns the current UNIX time; injectable for tests.

    Example::

        with HttpTransport() as transport, ResponseCache(cache_dir, CacheConfig()) as cache:
            client = CheckInClient(transport, cache, PayloadBuilder(config))
            result = client.status()
    """

    def __init__(
        self,
        transport: Transport,
        cache: ResultStore,
        payload_builder: PayloadBuilder,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._payload_builder = payload_builder
        self._endpoint = endpoint
        self._timeout = timeout
        self._clock = clock
        self._response: Optional[CheckInResult] = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def payload(self) -> CheckInRequest:
        """Return the payload for the current configuration and environment."""
        return self._payload_builder.build()

    def status(self) -> CheckInResult:
        """Return the check-in result, calling the endpoint only when needed.

        Returns:
            One of the :data:`~outpost.models.CheckInResult` variants.

        Raises:
            HTTPFailure: For any status outside 2xx, 422, 429 and 5xx,
                including an unfollowed 3xx redirect.
            ResponseDecodeError: If a 2xx body is not a JSON object.
            CacheStoreError: If the cache cannot be read.
            ConfigError: If the payload cannot be built.
        """
        request = self.payload()

        if self._response is not None:
            return self._response

        cached = self._cache.get(CACHE_KEY)
        if cached is not None and cached.is_valid_for(request, self._clock()):
            logger.debug("Check-in cache hit (%s)", cached.result.kind)
            self._response = cached.result
            return cached.result

        if cached is not None:
            logger.debug("Check-in cache entry is stale or for another payload")

        result, ttl = self._perform_request(request)
        self._store(request, result, ttl)
        self._response = result
        return result

    def radio(self) -> None:
        """Check in without returning the result."""
        self.status()

    def cached_entry(self) -> Optional[CachedEntry]:
        """Return the raw cached entry, valid or not, or ``None``."""
        return self._cache.get(CACHE_KEY)

    def clear_cache(self) -> None:
        """Delete the cached result. Safe to call when nothing is cached."""
        self._cache.forget(CACHE_KEY)
        self._response = None

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _perform_request(self, request: CheckInRequest) -> tuple[CheckInResult, float]:
        """POST *request* and classify the outcome into ``(result, ttl)``."""
        logger.debug("Checking in with %s", self._endpoint)
        try:
            response = self._transport.post(
                self._endpoint,
                {"accept": "application/json"},
                request,
                self._timeout,
            )
        except ConnectFailure as exc:
            logger.debug("Check-in endpoint unreachable: %s", exc)
            return CheckInServerError(), SERVER_ERROR_TTL
        except HTTPFailure as exc:
            return self._classify_failure(exc)

        if not 200 <= response.status_code < 300:
            # Redirects are not followed, so a 3xx arrives here.
            raise HTTPFailure(response.status_code, response.headers, response.body)

        return CheckInSuccess(data=_json_object(response.body)), SUCCESS_TTL

    def _classify_failure(self, exc: HTTPFailure) -> tuple[CheckInResult, float]:
        status = exc.status_code

        if status == 422:
            try:
                errors = _json_object(exc.body).get("errors")
            except ResponseDecodeError:
                errors = None
            return (
                CheckInValidationError(errors=errors if isinstance(errors, dict) else {}),
                VALIDATION_TTL,
            )

        if status == 429:
            seconds = _retry_after_seconds(exc.header("retry-after"), self._clock())
            if seconds is None:
                logger.warning(
                    "Rate limited without a usable Retry-After header (%r); "
                    "backing off for %ss",
                    exc.header("retry-after"),
                    SERVER_ERROR_TTL,
                )
                seconds = SERVER_ERROR_TTL
            return CheckInRateLimited(), seconds

        if 500 <= status < 600:
            return CheckInServerError(), SERVER_ERROR_TTL

        raise exc

    def _store(self, request: CheckInRequest, result: CheckInResult, ttl: float) -> None:
        expires_at = self._clock() + ttl
        entry = CachedEntry(
            result=result,
            expires_at=expires_at,
            request_fingerprint=request,
        )
        try:
            self._cache.put(CACHE_KEY, entry, expires_at)
        except CacheStoreError as exc:
            logger.warning("Could not cache check-in result: %s", exc)


@contextmanager
def open_client(config: GlobalConfig) -> Iterator[CheckInClient]:
    """Wire a :class:`CheckInClient` from *config* and close its resources on exit.

    The transport and the disk cache are created here and closed when the
    ``with`` block ends.

    Example::

        with open_client(resolve_config()) as client:
            client.radio()
    """
    with HttpTransport(verify_ssl=config.request.verify_ssl) as transport, ResponseCache(
        resolve_cache_dir(config), config.cache
    ) as cache:
        yield CheckInClient(
            transport,
            cache,
            PayloadBuilder(config),
            endpoint=config.endpoint,
            timeout=config.request.timeout,
        )
