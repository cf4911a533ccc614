"""Build the check-in payload from configuration and the environment.

The payload is both the request body and the cache fingerprint, so it must
be deterministic: two builds with unchanged configuration and unchanged
installed distributions compare equal. Keys are emitted in a fixed order and
``packages`` is sorted by distribution name.
"""

from __future__ import annotations

import importlib.metadata
import platform
import socket
from typing import Optional

from outpost import __version__
from outpost.config import resolve_license_key
from outpost.models import CheckInRequest, GlobalConfig


def _distribution_version(name: str) -> Optional[str]:
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return None


class PayloadBuilder:
    """Produce :data:`~outpost.models.CheckInRequest` payloads for *config*.

    Args:
        config: The effective global configuration.
    """

    def __init__(self, config: GlobalConfig) -> None:
        self._config = config

    def build(self) -> CheckInRequest:
        """Return the payload for the current environment.

        Raises:
            ConfigError: If the license key source cannot be resolved.
        """
        site = self._config.site
        return {
            "key": resolve_license_key(self._config.license_key_source),
            "host": site.host or socket.gethostname(),
            "ip": site.ip,
            "port": site.port,
            "outpost_version": __version__,
            "pro": self._config.pro,
            "python_version": platform.python_version(),
            "packages": self._packages(),
        }

    def _packages(self) -> dict[str, dict[str, Optional[str]]]:
        return {
            name: {
                "version": _distribution_version(name),
                "edition": self._config.packages[name],
            }
            for name in sorted(self._config.packages)
        }
