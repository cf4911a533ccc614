"""Disk-based result caching for outpost.

This package provides :class:`ResponseCache`, a :mod:`diskcache` store for
classified check-in results, and :class:`ResultStore`, the protocol that
:class:`~outpost.checkin.CheckInClient` is written against.

The cache is controlled by the ``cache`` section of the global
configuration (:class:`~outpost.models.CacheConfig`).
"""

from outpost.cache.cache import ResponseCache, ResultStore

__all__ = ["ResponseCache", "ResultStore"]
