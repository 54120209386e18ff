"""Fixtures for F5 tests - Web API.

Each test gets an app bound to a temp database and temp storage, with
sign-in links captured in memory instead of emailed.
"""

from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from edunotes.config.app_config import (
    ENV_OVERRIDES,
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    MailConfig,
    StorageConfig,
    clear_config_cache,
)
from edunotes.core.accounts import bootstrap_admin, operator_set_flags
from edunotes.core.mailer import LogLinkSender
from edunotes.web.api import create_app

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< >>\nendobj\n%%EOF\n"


def build_config(tmp_path: Path, revoke_sessions: bool = False) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "db" / "web.db")),
        auth=AuthConfig(
            secret_key="web-test-secret-key-for-session-tokens",
            public_base_url="http://testserver",
            revoke_sessions_on_access_change=revoke_sessions,
        ),
        storage=StorageConfig(
            root=str(tmp_path / "storage"),
            public_base_url="http://testserver/files",
            max_upload_mb=1,
        ),
        mail=MailConfig(backend="log"),
    )


@pytest.fixture
def web_env(tmp_path, monkeypatch) -> Path:
    """Temp working directory with no EDUNOTES_* overrides."""
    monkeypatch.chdir(tmp_path)
    for env_name in ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
    clear_config_cache()
    yield tmp_path
    clear_config_cache()


@pytest.fixture
def web_config(web_env) -> AppConfig:
    return build_config(web_env)


@pytest.fixture
def outbox() -> LogLinkSender:
    return LogLinkSender()


@pytest.fixture
def client(web_env, outbox) -> TestClient:
    app = create_app(build_config(web_env), link_sender=outbox)
    return TestClient(app)


@pytest.fixture
def revoking_client(web_env, outbox) -> TestClient:
    """Same database and secret as client, with session revocation enabled."""
    app = create_app(build_config(web_env, revoke_sessions=True), link_sender=outbox)
    return TestClient(app)


def sign_in(client: TestClient, outbox: LogLinkSender, email: str) -> dict[str, str]:
    """Run the email-link flow and return Bearer headers for the session."""
    response = client.post("/api/auth/sign-in", json={"email": email})
    assert response.status_code == 202

    link = outbox.last_link_for(email)
    token = parse_qs(urlparse(link).query)["token"][0]

    response = client.post("/api/auth/verify", json={"token": token})
    assert response.status_code == 200
    # Identity comes from the header in these tests, not the cookie jar
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def sign_in_as(client, outbox):
    """Factory: sign in an email through the API, return its auth headers."""

    def _sign_in(email: str) -> dict[str, str]:
        return sign_in(client, outbox, email)

    return _sign_in


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def admin_headers(client, outbox) -> dict[str, str]:
    bootstrap_admin("admin@example.com")
    return sign_in(client, outbox, "admin@example.com")


@pytest.fixture
def member_headers(client, outbox) -> dict[str, str]:
    headers = sign_in(client, outbox, "member@example.com")
    operator_set_flags("member@example.com", has_access=True)
    return headers


@pytest.fixture
def pending_headers(client, outbox) -> dict[str, str]:
    return sign_in(client, outbox, "pending@example.com")


@pytest.fixture
def math_subject(client, admin_headers) -> dict:
    response = client.post(
        "/api/subjects",
        json={"name": "Mathematics", "description": "Numbers and shapes"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()
