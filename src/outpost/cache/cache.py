"""Disk-based storage for classified check-in results.

Uses :mod:`diskcache` to persist :class:`~outpost.models.CachedEntry`
values on the filesystem. diskcache is backed by SQLite, so ``get`` and
``set`` are atomic across threads and processes sharing the directory,
which is all the check-in client needs for last-writer-wins semantics.

Entries are stored as JSON-mode dicts rather than pickled models so that an
upgrade that changes a model does not break unpickling; an entry that no
longer validates is reported as absent.

See Also:
    :class:`~outpost.models.CacheConfig` -- the Pydantic model that
    controls ``enabled`` and ``directory``.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Optional, Protocol

import diskcache
from pydantic import ValidationError

from outpost.exceptions import CacheStoreError
from outpost.models import CacheConfig, CachedEntry

logger = logging.getLogger(__name__)

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class ResultStore(Protocol):
    """The storage contract :class:`~outpost.checkin.CheckInClient` depends on."""

    def put(self, key: str, entry: CachedEntry, expires_at: float) -> None: ...

    def get(self, key: str) -> Optional[CachedEntry]: ...

    def forget(self, key: str) -> None: ...


class ResponseCache:
    """Disk-backed store for check-in results.

    Args:
        cache_dir: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.
        config: Cache configuration.  When ``enabled`` is false every
            lookup misses and writes are dropped.

    Example::

        import time

        from outpost.cache import ResponseCache
        from outpost.models import CacheConfig, CachedEntry, CheckInSuccess

        cache = ResponseCache("/tmp/outpost-cache", CacheConfig())
        entry = CachedEntry(
            result=CheckInSuccess(data={"ok": True}),
            expires_at=time.time() + 3600,
            request_fingerprint={"key": "abc"},
        )
        cache.put("outpost.response", entry, entry.expires_at)
        hit = cache.get("outpost.response")
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._cache: Optional[diskcache.Cache] = None
        self._cache_dir = Path(cache_dir)
        if config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "responses"))

    def __enter__(self) -> ResponseCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def put(self, key: str, entry: CachedEntry, expires_at: float) -> None:
        """Store *entry* under *key* until the UNIX timestamp *expires_at*.

        Raises:
            CacheStoreError: If the underlying store cannot be written.
        """
        if self._cache is None:
            return
        expire = max(expires_at - time.time(), 0.0)
        try:
            self._cache.set(key, entry.model_dump(mode="json"), expire=expire)
        except _STORE_ERRORS as exc:
            raise CacheStoreError(f"Cannot write cache key {key!r}: {exc}") from exc

    def get(self, key: str) -> Optional[CachedEntry]:
        """Return the entry stored under *key*, or ``None`` on a miss.

        Raises:
            CacheStoreError: If the underlying store cannot be read.
        """
        if self._cache is None:
            return None
        try:
            raw = self._cache.get(key)
        except _STORE_ERRORS as exc:
            raise CacheStoreError(f"Cannot read cache key {key!r}: {exc}") from exc
        if raw is None:
            return None
        try:
            return CachedEntry.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring unreadable cache entry under %r", key)
            return None

    def forget(self, key: str) -> None:
        """Remove *key*. Removing an absent key is a no-op."""
        if self._cache is None:
            return
        try:
            self._cache.delete(key)
        except _STORE_ERRORS as exc:
            raise CacheStoreError(f"Cannot delete cache key {key!r}: {exc}") from exc

    def clear(self) -> None:
        """Remove all entries from the cache."""
        if self._cache is not None:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled`` (bool), and when enabled:
            ``size`` (number of entries) and ``directory`` (str path).
        """
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._cache_dir / "responses"),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()
