"""Tests for operator CLI commands (F6)."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from edunotes.cli.commands import app
from edunotes.config.app_config import ENV_OVERRIDES, clear_config_cache
from edunotes.db.accounts_repository import get_account_by_email
from edunotes.db.content_repository import get_all_subjects

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Temp working directory and database file for CLI runs."""
    monkeypatch.chdir(tmp_path)
    for env_name in ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
    clear_config_cache()
    yield tmp_path / "db" / "cli.db"
    clear_config_cache()


def _run(*args, db_path):
    return runner.invoke(app, [*args, "--db", str(db_path)])


class TestInitDb:
    def test_creates_database(self, db_path):
        result = _run("init-db", db_path=db_path)

        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert db_path.exists()

    def test_uses_configured_path(self, tmp_path, db_path, monkeypatch):
        monkeypatch.setenv("EDUNOTES_DB_PATH", str(tmp_path / "from-env.db"))

        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert (tmp_path / "from-env.db").exists()


class TestSeed:
    def test_seed_then_seed_again(self, db_path):
        first = _run("seed", db_path=db_path)
        assert first.exit_code == 0
        assert "Added 4 subjects, 8 notes, 8 videos" in first.stdout
        assert [s.name for s in get_all_subjects()][:1] == ["Chemistry"]

        second = _run("seed", db_path=db_path)
        assert second.exit_code == 0
        assert "already present" in second.stdout
        assert len(get_all_subjects()) == 4


class TestAccounts:
    """Tests for create-admin, users, grant and revoke."""

    def test_create_admin(self, db_path):
        result = _run("create-admin", "Root@Example.com", db_path=db_path)

        assert result.exit_code == 0
        assert "root@example.com" in result.stdout
        account = get_account_by_email("root@example.com")
        assert account.has_access is True
        assert account.is_admin is True

    def test_create_admin_invalid_email(self, db_path):
        result = _run("create-admin", "nope", db_path=db_path)
        assert result.exit_code == 1
        assert "Invalid email" in result.stdout

    def test_users_empty(self, db_path):
        result = _run("users", db_path=db_path)
        assert result.exit_code == 0
        assert "No accounts yet" in result.stdout

    def test_users_lists_accounts(self, db_path):
        _run("create-admin", "root@example.com", db_path=db_path)

        result = _run("users", db_path=db_path)

        assert result.exit_code == 0
        assert "root@example.com" in result.stdout
        assert "Admin" in result.stdout

    def test_grant_and_revoke(self, db_path):
        _run("create-admin", "root@example.com", db_path=db_path)
        _run("revoke", "root@example.com", db_path=db_path)

        account = get_account_by_email("root@example.com")
        assert account.has_access is False
        assert account.is_admin is False
        assert account.session_version == 2

        result = _run("grant", "root@example.com", db_path=db_path)
        assert result.exit_code == 0
        assert "active" in result.stdout
        account = get_account_by_email("root@example.com")
        assert account.has_access is True
        assert account.is_admin is False

    def test_grant_admin(self, db_path):
        _run("create-admin", "root@example.com", db_path=db_path)
        _run("revoke", "root@example.com", db_path=db_path)

        _run("grant", "root@example.com", "--admin", db_path=db_path)

        assert get_account_by_email("root@example.com").is_admin is True

    def test_revoke_admin_only(self, db_path):
        _run("create-admin", "root@example.com", db_path=db_path)

        _run("revoke", "root@example.com", "--admin-only", db_path=db_path)

        account = get_account_by_email("root@example.com")
        assert account.has_access is True
        assert account.is_admin is False

    def test_grant_unknown_email(self, db_path):
        result = _run("grant", "ghost@example.com", db_path=db_path)
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestServe:
    def test_serve_runs_app_factory(self, db_path, monkeypatch):
        monkeypatch.setenv("EDUNOTES_SECRET_KEY", "cli-test-secret-key-0123456789abcdef")

        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", "--port", "9000"])

        assert result.exit_code == 0
        mock_run.assert_called_once_with(
            "edunotes.web.api:create_app",
            factory=True,
            host="127.0.0.1",
            port=9000,
            reload=False,
        )

    def test_serve_refuses_without_secret(self, db_path):
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        assert "EDUNOTES_SECRET_KEY" in result.stdout
        mock_run.assert_not_called()
