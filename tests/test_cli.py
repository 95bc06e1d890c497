"""Tests for CLI commands."""

import json
import tempfile
from pathlib import Path
from typing import Any

import pytest  # type: ignore[import-not-found]
from click.testing import CliRunner  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

from harvest_api import __version__
from harvest_api.cli.main import cli
from harvest_api.client import Harvest
from harvest_api.mock import MockStore, create_app


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Path:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> MockStore:
    """Create a seeded mock store."""
    return MockStore.from_dict(
        {
            "account": {
                "company": {"name": "Acme", "full_domain": "acme.harvestapp.com"},
                "user": {"id": 1, "email": "jane@example.com", "first_name": "Jane", "last_name": "Doe"},
            },
            "billable_tasks": [2],
            "people": [{"id": 1, "email": "jane@example.com", "first_name": "Jane", "is_active": True}],
            "projects": [{"id": 7, "name": "Website", "code": "WEB", "active": True}],
            "clients": [{"id": 3, "name": "Acme Corp", "currency": "EUR", "active": True}],
            "tasks": [{"id": 2, "name": "Design", "billable_by_default": True}],
            "invoices": [
                {"id": 1, "number": "INV-1", "state": "paid", "amount": 100},
                {"id": 2, "number": "INV-2", "state": "open", "amount": 50},
            ],
            "entries": [
                {"id": 1, "user_id": 1, "task_id": 2, "hours": 3, "spent_at": "2015-01-02"},
                {"id": 2, "user_id": 1, "task_id": 9, "hours": 1.5, "spent_at": "2015-01-03"},
                {"id": 3, "user_id": 1, "task_id": 2, "hours": 8, "spent_at": "2015-03-01"},
            ],
        }
    )


@pytest.fixture
def obj(store: MockStore) -> dict[str, Any]:
    """Create a context object carrying a client for the mock server."""
    return {"harvest": Harvest("http://testserver/", TestClient(create_app(store)))}


class TestCLICommands:
    """Test top-level commands."""

    def test_version(self, runner: CliRunner) -> None:
        """Test --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner: CliRunner) -> None:
        """Test --help flag."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Harvest API" in result.output

    def test_whoami(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test showing the account."""
        result = runner.invoke(cli, ["whoami"], obj=obj)

        assert result.exit_code == 0
        assert "Acme" in result.output
        assert "Jane Doe" in result.output

    def test_users(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test listing users."""
        result = runner.invoke(cli, ["users"], obj=obj)

        assert result.exit_code == 0
        assert "Users" in result.output
        assert "Jane" in result.output

    def test_projects(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test listing projects."""
        result = runner.invoke(cli, ["projects"], obj=obj)

        assert result.exit_code == 0
        assert "Website" in result.output
        assert "WEB" in result.output

    def test_projects_updated_since_filters(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test that projects never updated are filtered out."""
        result = runner.invoke(cli, ["projects", "--updated-since", "2015-01-01"], obj=obj)

        assert result.exit_code == 0
        assert "Website" not in result.output

    def test_projects_invalid_date(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test that a malformed date is a usage error."""
        result = runner.invoke(cli, ["projects", "--updated-since", "yesterday"], obj=obj)

        assert result.exit_code == 2
        assert "Invalid date format" in result.output

    def test_clients_and_tasks(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test listing clients and tasks."""
        clients = runner.invoke(cli, ["clients"], obj=obj)
        tasks = runner.invoke(cli, ["tasks"], obj=obj)

        assert clients.exit_code == 0
        assert "Acme Corp" in clients.output
        assert tasks.exit_code == 0
        assert "Design" in tasks.output

    def test_invoices_with_status(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test listing invoices filtered by state."""
        result = runner.invoke(cli, ["invoices", "--status", "paid"], obj=obj)

        assert result.exit_code == 0
        assert "INV-1" in result.output

    def test_invoices_unknown_status(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test that unknown states are rejected."""
        result = runner.invoke(cli, ["invoices", "--status", "lost"], obj=obj)
        assert result.exit_code == 2

    def test_entries(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test listing entries in a range."""
        result = runner.invoke(cli, ["entries", "1", "--from", "2015-01-01", "--to", "2015-01-31"], obj=obj)

        assert result.exit_code == 0
        assert "Entries 2015-01-01,2015-01-31" in result.output
        assert "Total: 4.50h" in result.output

    def test_entries_billable(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test listing billable entries only."""
        result = runner.invoke(
            cli, ["entries", "1", "--from", "2015-01-01", "--to", "2015-01-31", "--billable"], obj=obj
        )

        assert result.exit_code == 0
        assert "Total: 3.00h" in result.output

    def test_entries_requires_range(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test that both bounds are required."""
        result = runner.invoke(cli, ["entries", "1", "--from", "2015-01-01"], obj=obj)
        assert result.exit_code == 2

    def test_toggle(self, runner: CliRunner, obj: dict[str, Any], store: MockStore) -> None:
        """Test deactivating a project."""
        result = runner.invoke(cli, ["toggle", "projects", "7"], obj=obj)

        assert result.exit_code == 0
        assert "projects 7 is now inactive" in result.output
        assert store.find("projects", 7).active is False  # type: ignore[union-attr]

    def test_toggle_missing(self, runner: CliRunner, obj: dict[str, Any]) -> None:
        """Test that a missing resource is reported."""
        result = runner.invoke(cli, ["toggle", "people", "999"], obj=obj)

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Not found" in result.output

    def test_rate_limited(self, runner: CliRunner, obj: dict[str, Any], store: MockStore) -> None:
        """Test that throttling is reported with the retry delay."""
        store.throttle(retry_after=15)

        result = runner.invoke(cli, ["users"], obj=obj)

        assert result.exit_code == 1
        assert "Rate limit reached" in result.output
        assert "Retry after 15s" in result.output

    def test_missing_subdomain(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an unconfigured client is reported."""
        config_path = temp_dir / "config.yml"

        result = runner.invoke(cli, ["--config", str(config_path), "whoami"])

        assert result.exit_code == 1
        assert "No subdomain configured" in result.output


class TestConfigCommands:
    """Test config subcommands."""

    def test_set_and_get(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test setting then reading a value."""
        config_path = str(temp_dir / "config.yml")

        set_result = runner.invoke(cli, ["--config", config_path, "config", "set", "account.subdomain", "acme"])
        get_result = runner.invoke(cli, ["--config", config_path, "config", "get", "account.subdomain"])

        assert set_result.exit_code == 0
        assert "account.subdomain = acme" in set_result.output
        assert get_result.exit_code == 0
        assert get_result.output.strip() == "acme"

    def test_set_converts_numbers(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that numeric values are stored as numbers."""
        config_path = str(temp_dir / "config.yml")

        runner.invoke(cli, ["--config", config_path, "config", "set", "http.timeout", "12.5"])
        result = runner.invoke(cli, ["--config", config_path, "config", "show", "--json"])

        assert json.loads(result.output)["http.timeout"] == 12.5

    def test_set_invalid(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that invalid values are rejected."""
        config_path = str(temp_dir / "config.yml")

        result = runner.invoke(cli, ["--config", config_path, "config", "set", "auth.method", "kerberos"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_get_unknown_key(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test reading a key that names no setting."""
        result = runner.invoke(cli, ["--config", str(temp_dir / "config.yml"), "config", "get", "nope"])

        assert result.exit_code == 1
        assert "Unknown setting 'nope'" in result.output

    def test_show_masks_secrets(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that passwords and tokens are not printed."""
        config_path = str(temp_dir / "config.yml")
        runner.invoke(cli, ["--config", config_path, "config", "set", "auth.password", "hunter2"])

        table = runner.invoke(cli, ["--config", config_path, "config", "show"])
        as_json = runner.invoke(cli, ["--config", config_path, "config", "show", "--json"])

        assert "hunter2" not in table.output
        assert "hunter2" not in as_json.output
        assert json.loads(as_json.output)["auth.password"] == "********"

    def test_reset(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test resetting with a backup."""
        config_path = temp_dir / "config.yml"
        runner.invoke(cli, ["--config", str(config_path), "config", "set", "account.subdomain", "acme"])

        result = runner.invoke(cli, ["--config", str(config_path), "config", "reset", "--yes"])

        assert result.exit_code == 0
        assert config_path.with_suffix(".yml.backup").exists()
        get_result = runner.invoke(cli, ["--config", str(config_path), "config", "get", "account.subdomain"])
        assert get_result.exit_code == 1

    def test_validate_and_path(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test validate and path commands."""
        config_path = str(temp_dir / "config.yml")

        validate = runner.invoke(cli, ["--config", config_path, "config", "validate"])
        path = runner.invoke(cli, ["--config", config_path, "config", "path"])

        assert validate.exit_code == 0
        assert "is valid" in validate.output
        assert path.exit_code == 0
        assert "config.yml" in path.output

    def test_get_masks_secrets(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that set and get never echo a password."""
        config_path = str(temp_dir / "config.yml")

        set_result = runner.invoke(cli, ["--config", config_path, "config", "set", "auth.password", "hunter2"])
        get_result = runner.invoke(cli, ["--config", config_path, "config", "get", "auth.password"])

        assert "hunter2" not in set_result.output
        assert get_result.exit_code == 0
        assert get_result.output.strip() == "********"

    def test_unset(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test restoring one setting to its default."""
        config_path = str(temp_dir / "config.yml")
        runner.invoke(cli, ["--config", config_path, "config", "set", "mock.port", "9000"])

        result = runner.invoke(cli, ["--config", config_path, "config", "unset", "mock.port"])
        get_result = runner.invoke(cli, ["--config", config_path, "config", "get", "mock.port"])

        assert result.exit_code == 0
        assert "mock.port restored to 8080" in result.output
        assert get_result.output.strip() == "8080"

    def test_keys(self, runner: CliRunner) -> None:
        """Test listing setting names."""
        result = runner.invoke(cli, ["config", "keys"])

        assert result.exit_code == 0
        assert "account.subdomain" in result.output
        assert "advanced.log_level" in result.output

    def test_unusable_file(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an invalid settings file is reported and moved aside."""
        config_path = temp_dir / "config.yml"
        config_path.write_text("auth:\n  method: kerberos\n")

        result = runner.invoke(cli, ["--config", str(config_path), "config", "show"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert config_path.with_suffix(".yml.backup").exists()


class TestMockCommands:
    """Test mock subcommands."""

    def test_serve(self, runner: CliRunner, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that serve hands a seeded store to the server."""
        calls = []
        monkeypatch.setattr(
            "harvest_api.cli.mock_commands.run_server",
            lambda store, host, port: calls.append((store, host, port)),
        )
        seed = temp_dir / "seed.yml"
        seed.write_text("tasks:\n  - id: 3\n    name: Design\n")

        result = runner.invoke(
            cli,
            ["--config", str(temp_dir / "config.yml"), "mock", "serve", "--port", "9000", "--seed", str(seed), "--throttle", "5"],
        )

        assert result.exit_code == 0
        assert "http://127.0.0.1:9000/" in result.output
        store, host, port = calls[0]
        assert (host, port) == ("127.0.0.1", 9000)
        assert store.find("tasks", 3).name == "Design"
        assert store.retry_after == 5
