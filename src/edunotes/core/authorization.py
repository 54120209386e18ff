"""Authorization model.

Decides, from a request-scoped Principal, whether an action on an entity
kind is permitted. Every data-access entry point in edunotes.core calls
authorize() (writes, account reads) or visible_rows() (content reads)
before touching the store, so the rules hold for any client.

Rules:
- read subject: any authenticated account
- read note/video: has_access
- create/update/delete subject/note/video: is_admin
- read own account: always; read other/list accounts: is_admin
- update own account (owner-editable fields only): always
- update account flags, or another account: is_admin

Anything not matched above is denied.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence, TypeVar

import structlog

from edunotes.core.errors import AuthorizationError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Account fields grouped by who may change them
PRIVILEGED_ACCOUNT_FIELDS = frozenset({"has_access", "is_admin"})
OWNER_EDITABLE_FIELDS = frozenset({"display_name"})


class Action(str, Enum):
    """Operation kinds checked by the model."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityKind(str, Enum):
    """Entity types guarded by the model."""

    ACCOUNT = "account"
    SUBJECT = "subject"
    NOTE = "note"
    VIDEO = "video"


CONTENT_KINDS = frozenset({EntityKind.SUBJECT, EntityKind.NOTE, EntityKind.VIDEO})
GATED_KINDS = frozenset({EntityKind.NOTE, EntityKind.VIDEO})
WRITE_ACTIONS = frozenset({Action.CREATE, Action.UPDATE, Action.DELETE})


@dataclass(frozen=True)
class Principal:
    """Identity of the account performing a request.

    Loaded from the store for each request; never cached across requests,
    so flag changes apply on the next call.
    """

    account_id: str
    email: str
    has_access: bool = False
    is_admin: bool = False


def is_allowed(
    principal: Principal | None,
    action: Action,
    kind: EntityKind,
    *,
    target_account_id: str | None = None,
    fields: Iterable[str] = (),
) -> bool:
    """Return True if principal may perform action on kind.

    Args:
        principal: Requesting identity (None = unauthenticated)
        action: Operation kind
        kind: Entity type
        target_account_id: For ACCOUNT actions, the row acted on
            (None on READ means "list all accounts")
        fields: For ACCOUNT UPDATE, the fields being changed
    """
    if principal is None:
        return False

    if kind in CONTENT_KINDS:
        if action in WRITE_ACTIONS:
            return principal.is_admin
        if action is Action.READ:
            if kind in GATED_KINDS:
                return principal.has_access
            return True
        return False

    if kind is EntityKind.ACCOUNT:
        is_own = target_account_id is not None and target_account_id == principal.account_id
        if action is Action.READ:
            return is_own or principal.is_admin
        if action is Action.UPDATE:
            changed = frozenset(fields)
            if not changed or target_account_id is None:
                return False
            allowed_fields = OWNER_EDITABLE_FIELDS | PRIVILEGED_ACCOUNT_FIELDS
            if not changed <= allowed_fields:
                return False
            if principal.is_admin:
                return True
            return is_own and changed <= OWNER_EDITABLE_FIELDS
        # Accounts are created by provisioning only and never deleted
        return False

    return False


def authorize(
    principal: Principal | None,
    action: Action,
    kind: EntityKind,
    *,
    target_account_id: str | None = None,
    fields: Iterable[str] = (),
) -> Principal:
    """Check permission and return the principal, or raise.

    Raises:
        AuthorizationError: If the action is not permitted
    """
    fields = tuple(fields)
    if principal is not None and is_allowed(
        principal,
        action,
        kind,
        target_account_id=target_account_id,
        fields=fields,
    ):
        return principal

    reason = _denial_reason(principal, action, kind)
    logger.info(
        "authz.denied",
        account_id=principal.account_id if principal else None,
        action=action.value,
        kind=kind.value,
        target_account_id=target_account_id,
        fields=list(fields),
        reason=reason,
    )
    raise AuthorizationError(reason, f"Not allowed to {action.value} {kind.value}")


def visible_rows(
    principal: Principal | None,
    kind: EntityKind,
    rows: Sequence[T],
) -> list[T]:
    """Filter a read result down to what principal may see.

    Content reads without permission yield an empty list rather than an
    error, the same way a row-filtering store would answer.
    """
    if is_allowed(principal, Action.READ, kind):
        return list(rows)
    if rows:
        logger.debug(
            "authz.rows_hidden",
            account_id=principal.account_id if principal else None,
            kind=kind.value,
            count=len(rows),
        )
    return []


def _denial_reason(principal: Principal | None, action: Action, kind: EntityKind) -> str:
    if principal is None:
        return "not_authenticated"
    if kind in CONTENT_KINDS and action in WRITE_ACTIONS:
        return "admin_required"
    if kind in GATED_KINDS:
        return "access_required"
    if kind is EntityKind.ACCOUNT:
        return "admin_required" if action in (Action.READ, Action.UPDATE) else "not_permitted"
    return "not_permitted"
