"""Passwordless sign-in and session tokens.

Flow:
1. request_sign_in_link(email): store a hashed one-time token and send
   <public_base_url>/auth/verify?token=<token> to the email
2. verify_sign_in_link(token): consume the token, provision the account,
   return a signed session token (HS256 JWT)
3. resolve_principal(session_token): per request, decode the JWT and load
   the account's current flags from the store

Session tokens carry the account's session_version ("sv"). When the
account's version moves on (access revoked with revocation enabled),
older tokens stop resolving.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import structlog

from edunotes.config.app_config import AuthConfig, require_secret_key
from edunotes.core.accounts import principal_for, provision_account
from edunotes.core.authorization import Principal
from edunotes.core.errors import AuthenticationError, ValidationError
from edunotes.core.mailer import LinkSender
from edunotes.db.accounts_repository import AccountRecord, get_account_by_id
from edunotes.db.links_repository import consume_link, delete_expired_links, insert_link
from edunotes.utils.validators import normalize_email, validate_email

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"
TOKEN_BYTES = 32


@dataclass
class SignInResult:
    """Outcome of a successful link verification."""

    account: AccountRecord
    session_token: str
    expires_at: datetime


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def request_sign_in_link(
    email: str,
    sender: LinkSender,
    config: AuthConfig,
    now: datetime | None = None,
) -> None:
    """Issue a one-time sign-in link and send it to email.

    Nothing is revealed about whether an account exists for email.

    Raises:
        ValidationError: If email is malformed
        UpstreamError: If the link cannot be delivered
    """
    normalized = normalize_email(email)
    if not validate_email(normalized):
        raise ValidationError("email", "invalid_email", "Invalid email format")

    issued_at = _now(now)
    delete_expired_links(issued_at.isoformat())

    token = secrets.token_urlsafe(TOKEN_BYTES)
    expires_at = issued_at + timedelta(minutes=config.link_ttl_minutes)
    insert_link(_hash_token(token), normalized, expires_at.isoformat())

    link = f"{config.public_base_url}/auth/verify?token={token}"
    sender.send_sign_in_link(normalized, link, config.link_ttl_minutes)

    logger.info("auth.link_issued", email=normalized, expires_at=expires_at.isoformat())


def verify_sign_in_link(
    token: str,
    config: AuthConfig,
    now: datetime | None = None,
) -> SignInResult:
    """Consume a sign-in token, provision the account, open a session.

    Raises:
        AuthenticationError: If the token is unknown, used or expired
    """
    if not token:
        raise AuthenticationError("link_invalid", "Sign-in link is invalid")

    link = consume_link(_hash_token(token))
    if link is None:
        logger.info("auth.link_rejected", reason="unknown_or_used")
        raise AuthenticationError("link_invalid", "Sign-in link is invalid or already used")

    checked_at = _now(now)
    if datetime.fromisoformat(link.expires_at) <= checked_at:
        logger.info("auth.link_rejected", reason="expired", email=link.email)
        raise AuthenticationError("link_expired", "Sign-in link has expired")

    account = provision_account(link.email)
    session_token, expires_at = issue_session_token(account, config, now=checked_at)

    logger.info("auth.signed_in", account_id=account.id)
    return SignInResult(account=account, session_token=session_token, expires_at=expires_at)


def issue_session_token(
    account: AccountRecord,
    config: AuthConfig,
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """Create a signed session token for account.

    Returns:
        (token, expiry)

    Raises:
        ValueError: If no usable secret key is configured
    """
    issued_at = _now(now)
    expires_at = issued_at + timedelta(minutes=max(1, config.session_ttl_minutes))

    payload: dict[str, Any] = {
        "sub": account.id,
        "email": account.email,
        "sv": account.session_version,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, require_secret_key(config), algorithm=JWT_ALGORITHM), expires_at


def decode_session_token(token: str, config: AuthConfig) -> dict[str, Any]:
    """Verify signature and expiry of a session token.

    Raises:
        AuthenticationError: If the token is missing, expired or invalid
        ValueError: If no usable secret key is configured
    """
    if not token:
        raise AuthenticationError("missing_token", "Not signed in")
    try:
        return jwt.decode(token, require_secret_key(config), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("token_expired", "Session has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("token_invalid", "Session is invalid") from e


def resolve_principal(token: str, config: AuthConfig) -> Principal:
    """Turn a session token into the request's Principal.

    Flags come from the store on every call, so a grant or revoke applies
    to the very next request.

    Raises:
        AuthenticationError: If the token is invalid, the account is gone,
            or the session was revoked
    """
    payload = decode_session_token(token, config)

    account_id = payload.get("sub")
    if not account_id:
        raise AuthenticationError("token_missing_sub", "Session is invalid")

    account = get_account_by_id(str(account_id))
    if account is None:
        raise AuthenticationError("account_not_found", "Account no longer exists")

    if int(payload.get("sv", 0)) != account.session_version:
        logger.info("auth.session_revoked", account_id=account.id)
        raise AuthenticationError("session_revoked", "Session has been revoked")

    return principal_for(account)
