"""Tests for passwordless sign-in and sessions (F4)."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import jwt
import pytest

from edunotes.config.app_config import AuthConfig
from edunotes.core.accounts import set_account_flags
from edunotes.core.auth import (
    JWT_ALGORITHM,
    decode_session_token,
    issue_session_token,
    request_sign_in_link,
    resolve_principal,
    verify_sign_in_link,
)
from edunotes.core.errors import AuthenticationError, ValidationError
from edunotes.core.mailer import LogLinkSender
from edunotes.db.accounts_repository import get_account_by_email, get_all_accounts
from edunotes.db.database import get_db


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        secret_key="test-secret-key-for-session-tokens-0123",
        public_base_url="http://app.test",
        link_ttl_minutes=15,
        session_ttl_minutes=60,
    )


@pytest.fixture
def sender() -> LogLinkSender:
    return LogLinkSender()


def _token_from(link: str) -> str:
    return parse_qs(urlparse(link).query)["token"][0]


def _sign_in(email: str, sender: LogLinkSender, config: AuthConfig, now=None):
    request_sign_in_link(email, sender, config, now=now)
    return _token_from(sender.last_link_for(email.strip().lower()))


class TestRequestSignInLink:
    """Tests for request_sign_in_link."""

    def test_sends_link_to_normalized_email(self, isolated_db, sender, auth_config):
        request_sign_in_link(" Ana@Example.com ", sender, auth_config)

        assert len(sender.outbox) == 1
        sent = sender.outbox[0]
        assert sent.email == "ana@example.com"
        assert sent.link.startswith("http://app.test/auth/verify?token=")

    def test_token_stored_hashed(self, isolated_db, sender, auth_config):
        token = _sign_in("ana@example.com", sender, auth_config)

        with get_db() as conn:
            hashes = [row["token_hash"] for row in conn.execute("SELECT * FROM sign_in_links")]
        assert len(hashes) == 1
        assert token not in hashes

    def test_no_account_created_before_verification(self, isolated_db, sender, auth_config):
        request_sign_in_link("ana@example.com", sender, auth_config)
        assert get_all_accounts() == []

    def test_invalid_email_rejected(self, isolated_db, sender, auth_config):
        with pytest.raises(ValidationError):
            request_sign_in_link("nope", sender, auth_config)
        assert sender.outbox == []

    def test_expired_links_purged_on_request(self, isolated_db, sender, auth_config):
        long_ago = datetime.now(timezone.utc) - timedelta(days=1)
        _sign_in("old@example.com", sender, auth_config, now=long_ago)
        _sign_in("new@example.com", sender, auth_config)

        with get_db() as conn:
            emails = [row["email"] for row in conn.execute("SELECT email FROM sign_in_links")]
        assert emails == ["new@example.com"]


class TestVerifySignInLink:
    """Tests for verify_sign_in_link."""

    def test_verification_provisions_account(self, isolated_db, sender, auth_config):
        token = _sign_in("ana@example.com", sender, auth_config)

        result = verify_sign_in_link(token, auth_config)

        assert result.account.email == "ana@example.com"
        assert result.account.has_access is False
        assert result.account.is_admin is False
        assert result.session_token
        assert get_account_by_email("ana@example.com") is not None

    def test_link_is_single_use(self, isolated_db, sender, auth_config):
        token = _sign_in("ana@example.com", sender, auth_config)
        verify_sign_in_link(token, auth_config)

        with pytest.raises(AuthenticationError) as exc_info:
            verify_sign_in_link(token, auth_config)
        assert exc_info.value.reason == "link_invalid"

    def test_link_expires(self, isolated_db, sender, auth_config):
        issued = datetime.now(timezone.utc) - timedelta(minutes=30)
        token = _sign_in("ana@example.com", sender, auth_config, now=issued)

        with pytest.raises(AuthenticationError) as exc_info:
            verify_sign_in_link(token, auth_config)
        assert exc_info.value.reason == "link_expired"
        assert get_all_accounts() == []

    def test_unknown_token(self, isolated_db, auth_config):
        with pytest.raises(AuthenticationError) as exc_info:
            verify_sign_in_link("made-up", auth_config)
        assert exc_info.value.reason == "link_invalid"

    def test_empty_token(self, isolated_db, auth_config):
        with pytest.raises(AuthenticationError):
            verify_sign_in_link("", auth_config)

    def test_second_sign_in_reuses_account(self, isolated_db, sender, auth_config):
        first = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        second = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)

        assert first.account.id == second.account.id
        assert len(get_all_accounts()) == 1


class TestSessionTokens:
    """Tests for issuing and decoding session tokens."""

    def test_token_claims(self, isolated_db, sender, auth_config):
        result = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)

        payload = decode_session_token(result.session_token, auth_config)
        assert payload["sub"] == result.account.id
        assert payload["email"] == "ana@example.com"
        assert payload["sv"] == 1
        assert payload["exp"] - payload["iat"] == 60 * 60

    def test_expired_token(self, isolated_db, sender, auth_config):
        result = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        token, _ = issue_session_token(
            result.account,
            auth_config,
            now=datetime.now(timezone.utc) - timedelta(hours=2),
        )

        with pytest.raises(AuthenticationError) as exc_info:
            decode_session_token(token, auth_config)
        assert exc_info.value.reason == "token_expired"

    def test_wrong_signature(self, isolated_db, auth_config):
        forged = jwt.encode(
            {"sub": "x", "sv": 1},
            "another-secret-key-for-forged-tokens-0123",
            algorithm=JWT_ALGORITHM,
        )
        with pytest.raises(AuthenticationError) as exc_info:
            decode_session_token(forged, auth_config)
        assert exc_info.value.reason == "token_invalid"

    def test_missing_token(self, auth_config):
        with pytest.raises(AuthenticationError) as exc_info:
            decode_session_token("", auth_config)
        assert exc_info.value.reason == "missing_token"


class TestResolvePrincipal:
    """Tests for resolve_principal."""

    def test_flags_read_on_every_call(self, admin, sender, auth_config):
        result = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        assert resolve_principal(result.session_token, auth_config).has_access is False

        set_account_flags(admin, result.account.id, has_access=True)

        assert resolve_principal(result.session_token, auth_config).has_access is True

    def test_revocation_invalidates_existing_session(self, admin, sender, auth_config):
        result = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        set_account_flags(admin, result.account.id, has_access=True)
        resolve_principal(result.session_token, auth_config)

        set_account_flags(admin, result.account.id, has_access=False, revoke_sessions=True)

        with pytest.raises(AuthenticationError) as exc_info:
            resolve_principal(result.session_token, auth_config)
        assert exc_info.value.reason == "session_revoked"

    def test_new_session_after_revocation_works(self, admin, sender, auth_config):
        result = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        set_account_flags(admin, result.account.id, has_access=True)
        set_account_flags(admin, result.account.id, has_access=False, revoke_sessions=True)

        fresh = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        principal = resolve_principal(fresh.session_token, auth_config)
        assert principal.account_id == result.account.id
        assert principal.has_access is False

    def test_without_revocation_old_session_keeps_working(self, admin, sender, auth_config):
        result = verify_sign_in_link(_sign_in("ana@example.com", sender, auth_config), auth_config)
        set_account_flags(admin, result.account.id, has_access=True)
        set_account_flags(admin, result.account.id, has_access=False, revoke_sessions=False)

        principal = resolve_principal(result.session_token, auth_config)
        assert principal.has_access is False

    def test_token_without_subject(self, isolated_db, auth_config):
        token = jwt.encode({"sv": 1}, auth_config.secret_key, algorithm=JWT_ALGORITHM)
        with pytest.raises(AuthenticationError) as exc_info:
            resolve_principal(token, auth_config)
        assert exc_info.value.reason == "token_missing_sub"

    def test_token_for_unknown_account(self, isolated_db, auth_config):
        token = jwt.encode({"sub": "gone", "sv": 1}, auth_config.secret_key, algorithm=JWT_ALGORITHM)
        with pytest.raises(AuthenticationError) as exc_info:
            resolve_principal(token, auth_config)
        assert exc_info.value.reason == "account_not_found"
