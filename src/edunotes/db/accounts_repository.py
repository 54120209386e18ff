"""Repository functions for the users table.

Raw persistence only. Authorization is applied by edunotes.core.accounts.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

import structlog

from edunotes.db.database import get_db, new_id, utcnow_iso

logger = structlog.get_logger(__name__)


@dataclass
class AccountRecord:
    """Account record from database."""

    id: str
    email: str
    has_access: bool
    is_admin: bool
    display_name: str | None
    session_version: int
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "email": self.email,
            "has_access": self.has_access,
            "is_admin": self.is_admin,
            "display_name": self.display_name,
            "created_at": self.created_at,
        }


def insert_account_if_absent(email: str) -> AccountRecord:
    """Create the account for email unless it already exists.

    Idempotent: a second call for the same email returns the existing row
    untouched.

    Args:
        email: Normalized (lower-cased) email

    Returns:
        The account row for email
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO users (id, email, has_access, is_admin, created_at)
            VALUES (?, ?, 0, 0, ?)
            ON CONFLICT(email) DO NOTHING
            """,
            (new_id(), email, utcnow_iso()),
        )
        created = cursor.rowcount > 0
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()

    if created:
        logger.info("accounts.inserted", account_id=row["id"])

    return _row_to_record(row)


def get_account_by_id(account_id: str) -> AccountRecord | None:
    """Get account by ID, None if not found."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (account_id,)).fetchone()

    return _row_to_record(row) if row is not None else None


def get_account_by_email(email: str) -> AccountRecord | None:
    """Get account by (normalized) email, None if not found."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()

    return _row_to_record(row) if row is not None else None


def get_all_accounts() -> list[AccountRecord]:
    """Get all accounts, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM users ORDER BY created_at DESC, rowid DESC"
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def update_account_flags(
    account_id: str,
    has_access: bool | None = None,
    is_admin: bool | None = None,
    bump_session_version: bool = False,
) -> bool:
    """Update access/admin flags. Only provided fields are touched.

    Args:
        account_id: Account to update
        has_access: New access flag, or None to keep
        is_admin: New admin flag, or None to keep
        bump_session_version: Increment session_version (invalidates sessions)

    Returns:
        True if the row exists, False otherwise
    """
    fields: list[tuple[str, Any]] = []
    if has_access is not None:
        fields.append(("has_access = ?", 1 if has_access else 0))
    if is_admin is not None:
        fields.append(("is_admin = ?", 1 if is_admin else 0))

    sets = [clause for clause, _ in fields]
    if bump_session_version:
        sets.append("session_version = session_version + 1")

    with get_db() as conn:
        if not sets:
            row = conn.execute("SELECT 1 FROM users WHERE id = ?", (account_id,)).fetchone()
            return row is not None
        params = [value for _, value in fields] + [account_id]
        cursor = conn.execute(
            f"UPDATE users SET {', '.join(sets)} WHERE id = ?",
            params,
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug(
            "accounts.flags_updated",
            account_id=account_id,
            has_access=has_access,
            is_admin=is_admin,
            session_bumped=bump_session_version,
        )
    return updated


def update_display_name(account_id: str, display_name: str | None) -> bool:
    """Update the owner-editable display name.

    Returns:
        True if the row exists, False otherwise
    """
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE users SET display_name = ? WHERE id = ?",
            (display_name, account_id),
        )
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> AccountRecord:
    """Convert database row to AccountRecord."""
    return AccountRecord(
        id=row["id"],
        email=row["email"],
        has_access=bool(row["has_access"]),
        is_admin=bool(row["is_admin"]),
        display_name=row["display_name"],
        session_version=int(row["session_version"]),
        created_at=row["created_at"],
    )
