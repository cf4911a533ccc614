"""End-to-end tests for the outpost command line."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from outpost import __version__
from outpost.app import app, main
from outpost.config import global_config_path
from outpost.exceptions import HTTPFailure


@pytest.fixture()
def endpoint(isolated_config: Path, mock_transport, monkeypatch):
    """Route every transport the CLI opens to a mock endpoint.

    Returns a setter: call it with a request -> response function and it
    returns the recording handler.
    """

    def _serve(respond):
        transport, handler = mock_transport(respond)
        monkeypatch.setattr(
            "outpost.checkin.HttpTransport", lambda verify_ssl=True: transport
        )
        return handler

    return _serve


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"license": "active"})


class TestVersion:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"outpost {__version__}" in result.output


class TestStatus:
    def test_success_json(self, cli_runner, endpoint) -> None:
        handler = endpoint(_ok)

        result = cli_runner.invoke(app, ["--json", "--quiet", "status"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"kind": "success", "data": {"license": "active"}}
        assert handler.calls == 1

    def test_second_run_uses_cache(self, cli_runner, endpoint) -> None:
        """A fresh process sharing the cache directory does not call out again."""
        handler = endpoint(_ok)

        cli_runner.invoke(app, ["--quiet", "status"])
        result = cli_runner.invoke(app, ["--quiet", "status"])

        assert result.exit_code == 0
        assert handler.calls == 1

    def test_fresh_bypasses_cache(self, cli_runner, endpoint) -> None:
        handler = endpoint(_ok)

        cli_runner.invoke(app, ["--quiet", "status"])
        cli_runner.invoke(app, ["--quiet", "status", "--fresh"])

        assert handler.calls == 2

    def test_endpoint_flag(self, cli_runner, endpoint) -> None:
        handler = endpoint(_ok)

        cli_runner.invoke(app, ["--quiet", "--endpoint", "https://other.test/q", "status"])

        assert str(handler.requests[0].url) == "https://other.test/q"

    def test_endpoint_env(self, cli_runner, endpoint, monkeypatch) -> None:
        handler = endpoint(_ok)
        monkeypatch.setenv("OUTPOST_ENDPOINT", "https://env.test/q")

        cli_runner.invoke(app, ["--quiet", "status"])

        assert str(handler.requests[0].url) == "https://env.test/q"

    def test_rate_limited_is_reported(self, cli_runner, endpoint) -> None:
        endpoint(lambda request: httpx.Response(429, headers={"Retry-After": "60"}))

        result = cli_runner.invoke(app, ["--plain", "--no-color", "status"])

        assert result.exit_code == 0
        assert "rate limited" in result.output
        assert "error\t429" in result.output

    def test_unreachable_endpoint(self, cli_runner, endpoint) -> None:
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        endpoint(refuse)

        result = cli_runner.invoke(app, ["--plain", "--no-color", "status"])

        assert result.exit_code == 0
        assert "unavailable" in result.output
        assert "kind\tserver_error" in result.output

    def test_unclassified_status_fails(self, cli_runner, endpoint) -> None:
        endpoint(lambda request: httpx.Response(403))

        result = cli_runner.invoke(app, ["--quiet", "status"])

        assert result.exit_code != 0
        assert isinstance(result.exception, HTTPFailure)
        assert result.exception.status_code == 403


class TestMainEntryPoint:
    def test_outpost_error_exit_code(self, endpoint, monkeypatch, capsys) -> None:
        """Errors from the library exit with their own code."""
        endpoint(lambda request: httpx.Response(403))
        monkeypatch.setattr("outpost.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr("sys.argv", ["outpost", "--no-color", "status"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 5
        assert "HTTP 403" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self, isolated_config: Path, monkeypatch, capsys
    ) -> None:
        def explode(*args, **kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr("outpost.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr("outpost.app.app", explode)

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "outpost" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()
        assert "Debug log" in capsys.readouterr().err


class TestPayload:
    def test_payload_json(self, cli_runner, isolated_config: Path, monkeypatch) -> None:
        monkeypatch.setenv("OUTPOST_LICENSE_KEY", "cli-key")

        result = cli_runner.invoke(app, ["--json", "--quiet", "payload"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["key"] == "cli-key"
        assert payload["outpost_version"] == __version__
        assert payload["packages"] == {}

    def test_payload_does_not_touch_network(self, cli_runner, endpoint) -> None:
        handler = endpoint(_ok)
        cli_runner.invoke(app, ["--quiet", "payload"])
        assert handler.calls == 0


class TestCacheCommands:
    def test_show_empty(self, cli_runner, endpoint) -> None:
        endpoint(_ok)

        result = cli_runner.invoke(app, ["--no-color", "cache", "show"])

        assert result.exit_code == 0
        assert "No cached check-in result." in result.output

    def test_show_after_status(self, cli_runner, endpoint) -> None:
        endpoint(_ok)
        cli_runner.invoke(app, ["--quiet", "status"])

        result = cli_runner.invoke(app, ["--json", "--quiet", "cache", "show"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["result"] == {"kind": "success", "data": {"license": "active"}}
        assert data["request_fingerprint"]["outpost_version"] == __version__

    def test_clear(self, cli_runner, endpoint) -> None:
        handler = endpoint(_ok)
        cli_runner.invoke(app, ["--quiet", "status"])

        result = cli_runner.invoke(app, ["--no-color", "cache", "clear"])
        cli_runner.invoke(app, ["--quiet", "status"])

        assert result.exit_code == 0
        assert "Check-in cache cleared." in result.output
        assert handler.calls == 2

    def test_clear_when_empty(self, cli_runner, endpoint) -> None:
        endpoint(_ok)
        result = cli_runner.invoke(app, ["--quiet", "cache", "clear"])
        assert result.exit_code == 0


class TestConfigCommands:
    def test_show(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["license_key_source"] == "env:OUTPOST_LICENSE_KEY"

    def test_set_nested_and_coerce(self, cli_runner, isolated_config: Path) -> None:
        cli_runner.invoke(app, ["config", "set", "site.port", "8443"])
        cli_runner.invoke(app, ["config", "set", "pro", "true"])

        data = json.loads(global_config_path().read_text(encoding="utf-8"))
        assert data["site"]["port"] == 8443
        assert data["pro"] is True

    def test_set_package(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "packages.outpost-seo", "pro"])

        assert result.exit_code == 0, result.output
        assert "Set packages.outpost-seo = pro" in result.output
        data = json.loads(global_config_path().read_text(encoding="utf-8"))
        assert data["packages"] == {"outpost-seo": "pro"}

    def test_set_unknown_key(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "nonsense", "1"])

        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_set_bad_integer(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "config", "set", "request.timeout", "soon"])
        assert result.exit_code == 2

    def test_reset_force(self, cli_runner, isolated_config: Path) -> None:
        cli_runner.invoke(app, ["config", "set", "pro", "true"])

        result = cli_runner.invoke(app, ["--force", "config", "reset"])

        assert result.exit_code == 0
        data = json.loads(global_config_path().read_text(encoding="utf-8"))
        assert data["pro"] is False

    def test_reset_cancelled(self, cli_runner, isolated_config: Path) -> None:
        cli_runner.invoke(app, ["config", "set", "pro", "true"])

        result = cli_runner.invoke(app, ["--no-color", "config", "reset"], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled." in result.output
        data = json.loads(global_config_path().read_text(encoding="utf-8"))
        assert data["pro"] is True
