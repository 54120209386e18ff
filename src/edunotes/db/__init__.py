"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for accounts, content and sign-in links
"""

from edunotes.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
