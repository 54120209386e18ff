"""Error taxonomy for EduNotes operations.

Every rejected operation raises a subclass of EduNotesError carrying a
short machine-readable reason. The web layer maps each class to an HTTP
status; the CLI prints the message and exits non-zero.
"""

from __future__ import annotations


class EduNotesError(Exception):
    """Base class for rejected operations."""

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or reason)


class AuthenticationError(EduNotesError):
    """Bad, expired or already-used sign-in link, or invalid session."""


class AuthorizationError(EduNotesError):
    """Principal lacks the flag required for the operation."""


class ValidationError(EduNotesError):
    """Missing or malformed input (empty subject name, missing file, ...)."""

    def __init__(self, field: str, reason: str, message: str | None = None):
        self.field = field
        super().__init__(reason, message or f"{field}: {reason}")


class NotFoundError(EduNotesError):
    """Target row does not exist (or no longer exists)."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind}_not_found", f"{kind.capitalize()} '{entity_id}' not found")


class UpstreamError(EduNotesError):
    """File storage or mail delivery failed."""
