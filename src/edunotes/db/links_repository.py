"""Repository functions for one-time sign-in links."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from edunotes.db.database import get_db, utcnow_iso

logger = structlog.get_logger(__name__)


@dataclass
class SignInLinkRecord:
    """Sign-in link record (token stored hashed)."""

    token_hash: str
    email: str
    created_at: str
    expires_at: str
    used_at: str | None


def insert_link(token_hash: str, email: str, expires_at: str) -> None:
    """Store a newly issued sign-in link."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO sign_in_links (token_hash, email, created_at, expires_at)
            VALUES (?, ?, ?, ?)
            """,
            (token_hash, email, utcnow_iso(), expires_at),
        )


def consume_link(token_hash: str) -> SignInLinkRecord | None:
    """Mark a link as used and return it as it was before consumption.

    The update is conditional on used_at IS NULL, so two concurrent
    verifications of the same token cannot both succeed.

    Returns:
        The link record if it existed and was unused, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM sign_in_links WHERE token_hash = ?", (token_hash,)
        ).fetchone()
        if row is None or row["used_at"] is not None:
            return None
        cursor = conn.execute(
            "UPDATE sign_in_links SET used_at = ? WHERE token_hash = ? AND used_at IS NULL",
            (utcnow_iso(), token_hash),
        )
        if cursor.rowcount == 0:
            return None

    return SignInLinkRecord(
        token_hash=row["token_hash"],
        email=row["email"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        used_at=None,
    )


def delete_expired_links(now_iso: str) -> int:
    """Remove expired links. Returns number of rows deleted."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM sign_in_links WHERE expires_at < ?", (now_iso,)
        )
    if cursor.rowcount:
        logger.debug("sign_in_links.purged", count=cursor.rowcount)
    return cursor.rowcount
