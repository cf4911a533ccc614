"""Shared test fixtures for outpost.

Provides reusable fixtures for isolated config environments, output state,
a controllable clock, mock HTTP transports and CLI invocation. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

import httpx
import pytest

from outpost.client.transport import HttpTransport
from outpost.models import CacheConfig, GlobalConfig, SiteConfig
from outpost.output import reset_output
from outpost.payload import PayloadBuilder


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    The same holds for the handler that the CLI attaches to the
    ``outpost`` logger, so it is removed as well.
    """
    yield
    reset_output()
    logger = logging.getLogger("outpost")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """A callable clock that only moves when told to.

    Starts at the real current time so that diskcache's own expiry (which
    always uses the wall clock) never drops entries during a test.
    """

    def __init__(self, start: float | None = None) -> None:
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_config() -> GlobalConfig:
    """A config whose payload is fully determined (no env lookups)."""
    return GlobalConfig(
        endpoint="https://outpost.test/v3/query",
        license_key_source="value:test-license-key",
        pro=True,
        site=SiteConfig(host="shop.example.com", ip="10.0.0.5", port=443),
        packages={"outpost-not-installed": "pro"},
        cache=CacheConfig(enabled=True),
    )


@pytest.fixture
def payload_builder(sample_config: GlobalConfig) -> PayloadBuilder:
    return PayloadBuilder(sample_config)


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all OUTPOST_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("outpost.config._is_xdg_platform", lambda: True)

    for var in [
        "OUTPOST_ENDPOINT",
        "OUTPOST_CONFIG",
        "OUTPOST_LICENSE_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


class RecordingHandler:
    """httpx.MockTransport handler that counts calls and replays a response.

    Args:
        respond: Builds the response for a request; may raise an
            :class:`httpx.TransportError` to simulate a network failure.
    """

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self._respond = respond
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)


@pytest.fixture
def mock_transport():
    """Factory for an :class:`HttpTransport` backed by :class:`httpx.MockTransport`.

    Call it with a function mapping a request to a response; it returns
    ``(transport, handler)`` where ``handler.calls`` counts requests.
    """
    clients: list[httpx.Client] = []

    def _make(
        respond: Callable[[httpx.Request], httpx.Response],
    ) -> tuple[HttpTransport, RecordingHandler]:
        handler = RecordingHandler(respond)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return HttpTransport(client=client), handler

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
