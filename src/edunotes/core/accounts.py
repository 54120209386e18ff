"""Account provisioning and management.

Responsibilities:
- Provision exactly one account per authenticated email, with no
  privileges (has_access=false, is_admin=false)
- Let administrators list accounts and grant/revoke access and admin flags
- Let owners read their own row and edit non-privileged fields
"""

from __future__ import annotations

import structlog

from edunotes.config.app_config import load_app_config
from edunotes.core.authorization import (
    PRIVILEGED_ACCOUNT_FIELDS,
    Action,
    EntityKind,
    Principal,
    authorize,
)
from edunotes.core.errors import NotFoundError, ValidationError
from edunotes.db.accounts_repository import (
    AccountRecord,
    get_account_by_email,
    get_account_by_id,
    get_all_accounts,
    insert_account_if_absent,
    update_account_flags,
    update_display_name,
)
from edunotes.utils.validators import clean_optional_text, normalize_email, validate_email

logger = structlog.get_logger(__name__)

DISPLAY_NAME_MAX_LENGTH = 100


def principal_for(account: AccountRecord) -> Principal:
    """Build the request-scoped identity for an account row."""
    return Principal(
        account_id=account.id,
        email=account.email,
        has_access=account.has_access,
        is_admin=account.is_admin,
    )


def provision_account(email: str) -> AccountRecord:
    """Ensure an account exists for an authenticated email.

    Idempotent: repeated calls return the same row and never reset flags.

    Raises:
        ValidationError: If email is malformed
    """
    normalized = normalize_email(email)
    if not validate_email(normalized):
        raise ValidationError("email", "invalid_email", "Invalid email format")

    account = insert_account_if_absent(normalized)
    logger.debug("accounts.provisioned", account_id=account.id)
    return account


def get_account(principal: Principal, account_id: str) -> AccountRecord:
    """Read an account row (own row always, others admin-only).

    Raises:
        AuthorizationError: If principal may not read the row
        NotFoundError: If the row does not exist
    """
    authorize(principal, Action.READ, EntityKind.ACCOUNT, target_account_id=account_id)
    account = get_account_by_id(account_id)
    if account is None:
        raise NotFoundError("account", account_id)
    return account


def list_accounts(principal: Principal) -> list[AccountRecord]:
    """List all accounts, newest first (admin-only)."""
    authorize(principal, Action.READ, EntityKind.ACCOUNT)
    return get_all_accounts()


def set_account_flags(
    principal: Principal,
    account_id: str,
    *,
    has_access: bool | None = None,
    is_admin: bool | None = None,
    revoke_sessions: bool | None = None,
) -> AccountRecord:
    """Grant or revoke access/admin flags on an account (admin-only).

    Args:
        principal: Requesting identity
        account_id: Account to change
        has_access: New access flag, or None to keep
        is_admin: New admin flag, or None to keep
        revoke_sessions: Invalidate the account's sessions when a flag is
            lowered. None uses auth.revoke_sessions_on_access_change.

    Raises:
        AuthorizationError: If principal is not an admin
        ValidationError: If no flag is given
        NotFoundError: If the row does not exist
    """
    fields = [
        name
        for name, value in (("has_access", has_access), ("is_admin", is_admin))
        if value is not None
    ]
    authorize(
        principal,
        Action.UPDATE,
        EntityKind.ACCOUNT,
        target_account_id=account_id,
        fields=fields or PRIVILEGED_ACCOUNT_FIELDS,
    )
    if not fields:
        raise ValidationError("flags", "no_changes", "Provide has_access and/or is_admin")

    current = get_account_by_id(account_id)
    if current is None:
        raise NotFoundError("account", account_id)

    if revoke_sessions is None:
        revoke_sessions = load_app_config().auth.revoke_sessions_on_access_change

    lowered = (has_access is False and current.has_access) or (
        is_admin is False and current.is_admin
    )

    if not update_account_flags(
        account_id,
        has_access=has_access,
        is_admin=is_admin,
        bump_session_version=bool(revoke_sessions and lowered),
    ):
        raise NotFoundError("account", account_id)

    logger.info(
        "accounts.flags_changed",
        by=principal.account_id,
        account_id=account_id,
        has_access=has_access,
        is_admin=is_admin,
        sessions_revoked=bool(revoke_sessions and lowered),
    )

    updated = get_account_by_id(account_id)
    if updated is None:
        raise NotFoundError("account", account_id)
    return updated


def update_own_profile(principal: Principal, *, display_name: str | None) -> AccountRecord:
    """Edit the principal's own non-privileged fields.

    Raises:
        ValidationError: If display_name is too long
        NotFoundError: If the principal's row is gone
    """
    authorize(
        principal,
        Action.UPDATE,
        EntityKind.ACCOUNT,
        target_account_id=principal.account_id,
        fields=["display_name"],
    )

    cleaned = clean_optional_text(display_name)
    if cleaned is not None and len(cleaned) > DISPLAY_NAME_MAX_LENGTH:
        raise ValidationError("display_name", "too_long")

    if not update_display_name(principal.account_id, cleaned):
        raise NotFoundError("account", principal.account_id)

    account = get_account_by_id(principal.account_id)
    if account is None:
        raise NotFoundError("account", principal.account_id)
    return account


def find_account_by_email(email: str) -> AccountRecord | None:
    """Operator lookup by email (CLI only, no principal involved)."""
    return get_account_by_email(normalize_email(email))


def operator_set_flags(
    email: str,
    *,
    has_access: bool | None = None,
    is_admin: bool | None = None,
) -> AccountRecord:
    """Change flags of an existing account from the CLI.

    Lowering a flag here always invalidates the account's sessions.

    Raises:
        NotFoundError: If no account exists for email
    """
    account = find_account_by_email(email)
    if account is None:
        raise NotFoundError("account", normalize_email(email))

    lowered = (has_access is False and account.has_access) or (
        is_admin is False and account.is_admin
    )
    update_account_flags(
        account.id,
        has_access=has_access,
        is_admin=is_admin,
        bump_session_version=lowered,
    )
    logger.info(
        "accounts.flags_changed",
        by="operator",
        account_id=account.id,
        has_access=has_access,
        is_admin=is_admin,
        sessions_revoked=lowered,
    )

    refreshed = get_account_by_id(account.id)
    if refreshed is None:
        raise NotFoundError("account", account.id)
    return refreshed


def bootstrap_admin(email: str) -> AccountRecord:
    """Provision an account and give it access and admin rights.

    Operator action used by the CLI to create the first administrator;
    no request principal is involved.
    """
    account = provision_account(email)
    update_account_flags(account.id, has_access=True, is_admin=True)
    logger.info("accounts.admin_bootstrapped", account_id=account.id)

    refreshed = get_account_by_id(account.id)
    if refreshed is None:
        raise NotFoundError("account", account.id)
    return refreshed
