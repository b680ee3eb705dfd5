"""Unit tests for the tenant-api CLI."""

import io
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from tenant_api.cli import main as cli_main
from tenant_api.cli.main import cli
from tenant_api.features.client.client import ApiClient
from tenant_api.features.client.factory import create_api_client
from tenant_api.observability.logging import configure_logging
from tenant_api.settings import AppSettings

from tests.helpers.env import isolate_settings_env
from tests.helpers.http import error_envelope


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a temporary credential database."""
    return tmp_path / "credentials.db"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Ignore API_* and LOG_* variables from the surrounding shell."""
    isolate_settings_env(monkeypatch, tmp_path)


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch, isolated_env: None) -> None:
    """Send CLI logs to a private buffer instead of the runner's streams."""
    sink = io.StringIO()

    def _configure(**kwargs: Any) -> None:
        configure_logging(level=kwargs["level"], output=sink)

    monkeypatch.setattr(cli_main, "configure_logging", _configure)
    monkeypatch.setenv("API_BASE_URL", "http://api.test")


def use_transport(
    monkeypatch: pytest.MonkeyPatch,
    handler: Callable[[httpx.Request], httpx.Response],
) -> None:
    """Route every client the CLI creates through a mock transport."""

    def _factory(settings: AppSettings, **kwargs: Any) -> ApiClient:
        return create_api_client(
            settings, transport=httpx.MockTransport(handler), **kwargs
        )

    monkeypatch.setattr(cli_main, "create_api_client", _factory)


class TestSessionCommands:
    """Tests for commands that only touch stored credentials."""

    def test_version(self, cli_runner: CliRunner) -> None:
        """Test the version flag."""
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_use_tenant_then_whoami(self, cli_runner: CliRunner, db_path: Path) -> None:
        """Test that the active tenant persists between invocations."""
        result = cli_runner.invoke(cli, ["use-tenant", "t1", "--db", str(db_path)])
        assert result.exit_code == 0
        assert "Active tenant: t1" in result.output

        result = cli_runner.invoke(cli, ["whoami", "--json", "--db", str(db_path)])

        assert result.exit_code == 0
        session = json.loads(result.stdout)
        assert session == {
            "authenticated": False,
            "user_id": None,
            "tenant_id": "t1",
            "base_url": "http://api.test",
        }

    def test_logout_clears_tenant(self, cli_runner: CliRunner, db_path: Path) -> None:
        """Test that logout forgets the active tenant."""
        cli_runner.invoke(cli, ["use-tenant", "t1", "--db", str(db_path)])

        result = cli_runner.invoke(cli, ["logout", "--db", str(db_path)])
        assert result.exit_code == 0

        result = cli_runner.invoke(cli, ["whoami", "--db", str(db_path)])
        assert "tenant_id: None" in result.output


class TestNetworkCommands:
    """Tests for commands that call the API."""

    def test_login_stores_tokens(
        self,
        cli_runner: CliRunner,
        db_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that login persists the session."""
        use_transport(
            monkeypatch,
            lambda _: httpx.Response(
                200, json={"access_token": "access-1", "refresh_token": "refresh-1"}
            ),
        )

        result = cli_runner.invoke(
            cli,
            [
                "login",
                "--email",
                "ana@example.com",
                "--password",
                "secret",
                "--tenant",
                "t1",
                "--db",
                str(db_path),
            ],
        )
        assert result.exit_code == 0
        assert "Logged in." in result.output

        result = cli_runner.invoke(cli, ["whoami", "--json", "--db", str(db_path)])
        session = json.loads(result.stdout)
        assert session["authenticated"] is True
        assert session["tenant_id"] == "t1"

    def test_request_is_tenant_scoped(
        self,
        cli_runner: CliRunner,
        db_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a scoped GET with query parameters."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": 1}])

        use_transport(monkeypatch, handler)
        cli_runner.invoke(cli, ["use-tenant", "t1", "--db", str(db_path)])

        result = cli_runner.invoke(
            cli,
            ["request", "get", "/clients", "-p", "status=active", "--db", str(db_path)],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": 1}]
        assert str(seen[0].url) == "http://api.test/clients?tenant_id=t1&status=active"
        assert seen[0].headers["x-tenant-id"] == "t1"

    def test_request_error_exit_code(
        self,
        cli_runner: CliRunner,
        db_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that API errors are reported with a non-zero exit code."""
        use_transport(
            monkeypatch,
            lambda _: error_envelope(
                422,
                "VALIDATION_ERROR",
                "Invalid input",
                details=[{"field": "name", "message": "Required"}],
            ),
        )

        result = cli_runner.invoke(
            cli,
            ["request", "POST", "/clients", "-d", "{}", "--db", str(db_path)],
        )

        assert result.exit_code == 1
        assert "Error [VALIDATION_ERROR] Invalid input" in result.output
        assert "name: Required" in result.output

    def test_request_rejects_bad_param(
        self, cli_runner: CliRunner, db_path: Path
    ) -> None:
        """Test that malformed --param values are usage errors."""
        result = cli_runner.invoke(
            cli, ["request", "GET", "/clients", "-p", "oops", "--db", str(db_path)]
        )

        assert result.exit_code == 2
        assert "key=value" in result.output


class TestConfigurationErrors:
    """Tests for invalid environment configuration."""

    def test_out_of_range_timeout(
        self,
        cli_runner: CliRunner,
        db_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that an out-of-range timeout is reported without a traceback."""
        monkeypatch.setenv("API_TIMEOUT_MS", "900000")

        result = cli_runner.invoke(cli, ["whoami", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert "timeout_ms" in result.output
        assert "Traceback" not in result.output

    def test_non_numeric_setting(
        self,
        cli_runner: CliRunner,
        db_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that a malformed environment value is reported."""
        monkeypatch.setenv("API_RETRY_ATTEMPTS", "many")

        result = cli_runner.invoke(cli, ["use-tenant", "t1", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert "API_RETRY_ATTEMPTS" in result.output
