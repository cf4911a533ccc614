"""Canonical Pydantic models shared across all outpost modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`SiteConfig`, :class:`RequestConfig`, :class:`CacheConfig`
    and :class:`GlobalConfig`.

**Check-in models** -- produced and consumed by
:class:`~outpost.checkin.CheckInClient`:
    the :data:`CheckInResult` union (:class:`CheckInSuccess`,
    :class:`CheckInValidationError`, :class:`CheckInRateLimited`,
    :class:`CheckInServerError`) and :class:`CachedEntry`.

The request payload itself is a plain insertion-ordered ``dict`` aliased as
:data:`CheckInRequest`. It is sent as the JSON body and doubles as the cache
fingerprint, so equality is structural.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CheckInRequest = dict[str, Any]
"""The serialised check-in payload. Also the fingerprint of a cached result."""

DEFAULT_ENDPOINT = "https://outpost.example.com/v3/query"
"""Check-in endpoint used when no other endpoint is configured."""


# --- Configuration ---


class SiteConfig(BaseModel):
    """Identity of the installation reported on every check-in.

    ``host`` defaults to ``None``, in which case the payload builder falls
    back to the machine's hostname.
    """

    host: Optional[str] = Field(default=None, description="Public host name")
    ip: Optional[str] = Field(default=None, description="Server address")
    port: Optional[int] = Field(default=None, description="Server port")


class RequestConfig(BaseModel):
    """HTTP settings for the outbound check-in call."""

    timeout: int = Field(default=5, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable response caching")
    directory: Optional[str] = Field(
        default=None, description="Override the cache directory"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/outpost/config.json``.

    Loaded and saved by :func:`~outpost.config.load_global_config` and
    :func:`~outpost.config.save_global_config`. See
    :func:`~outpost.config.resolve_config` for the precedence chain.

    ``packages`` maps a distribution name to the edition reported for it
    (e.g. ``{"outpost-seo": "pro"}``). Versions are looked up at payload
    build time, never stored.
    """

    endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Check-in endpoint URL",
    )
    license_key_source: str = Field(
        default="env:OUTPOST_LICENSE_KEY",
        description="License key source: env:VAR, file:/path, value:LITERAL",
    )
    pro: bool = Field(default=False, description="Report the pro edition")
    site: SiteConfig = Field(default_factory=SiteConfig)
    packages: dict[str, Optional[str]] = Field(default_factory=dict)
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Check-in results ---


class _ResultBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def error_code(self) -> Optional[int]:
        """Status-like error code for the variant, ``None`` on success."""
        return None

    @property
    def is_error(self) -> bool:
        return self.error_code is not None


class CheckInSuccess(_ResultBase):
    """The endpoint accepted the check-in (HTTP 2xx)."""

    kind: Literal["success"] = "success"
    data: dict[str, Any] = Field(default_factory=dict)


class CheckInValidationError(_ResultBase):
    """The endpoint rejected the payload (HTTP 422).

    ``errors`` maps a payload field to its list of messages, as returned by
    the endpoint.
    """

    kind: Literal["validation_error"] = "validation_error"
    errors: dict[str, Any] = Field(default_factory=dict)

    @property
    def error_code(self) -> Optional[int]:
        return 422


class CheckInRateLimited(_ResultBase):
    """The endpoint asked the caller to back off (HTTP 429)."""

    kind: Literal["rate_limited"] = "rate_limited"

    @property
    def error_code(self) -> Optional[int]:
        return 429


class CheckInServerError(_ResultBase):
    """The endpoint was unreachable or failed (HTTP 5xx or no response)."""

    kind: Literal["server_error"] = "server_error"

    @property
    def error_code(self) -> Optional[int]:
        return 500


CheckInResult = Annotated[
    Union[
        CheckInSuccess,
        CheckInValidationError,
        CheckInRateLimited,
        CheckInServerError,
    ],
    Field(discriminator="kind"),
]
"""Tagged union of every outcome :class:`~outpost.checkin.CheckInClient` can return."""


class CachedEntry(BaseModel):
    """A classified result stored under the check-in cache key.

    An entry may be reused only while ``now < expires_at`` and
    ``request_fingerprint`` equals the payload about to be sent. Entries that
    fail either test are ignored and overwritten on the next write.

    Attributes:
        result: The classified check-in outcome.
        expires_at: Expiry as a UNIX timestamp in seconds.
        request_fingerprint: The payload the result was obtained for.
    """

    result: CheckInResult
    expires_at: float
    request_fingerprint: CheckInRequest

    def is_valid_for(self, request: CheckInRequest, now: float) -> bool:
        """Return ``True`` if this entry may answer *request* at time *now*."""
        return now < self.expires_at and self.request_fingerprint == request
