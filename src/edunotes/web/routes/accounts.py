"""Account endpoints: own profile and admin user management."""

from fastapi import APIRouter, Depends

from edunotes.core.accounts import (
    get_account,
    list_accounts,
    set_account_flags,
    update_own_profile,
)
from edunotes.config.app_config import AppConfig
from edunotes.core.authorization import Principal
from edunotes.web.deps import get_config, get_principal
from edunotes.web.schemas import (
    AccountFlagsUpdate,
    AccountListResponse,
    AccountResponse,
    ProfileUpdate,
)

router = APIRouter(tags=["accounts"])


@router.get("/api/me", response_model=AccountResponse)
def read_me(principal: Principal = Depends(get_principal)) -> AccountResponse:
    """The signed-in account's own row."""
    account = get_account(principal, principal.account_id)
    return AccountResponse.model_validate(account)


@router.patch("/api/me", response_model=AccountResponse)
def update_me(
    body: ProfileUpdate,
    principal: Principal = Depends(get_principal),
) -> AccountResponse:
    """Edit the signed-in account's non-privileged fields."""
    account = update_own_profile(principal, display_name=body.display_name)
    return AccountResponse.model_validate(account)


@router.get("/api/admin/accounts", response_model=AccountListResponse)
def admin_list_accounts(principal: Principal = Depends(get_principal)) -> AccountListResponse:
    """List all accounts, newest first (admin)."""
    accounts = [AccountResponse.model_validate(a) for a in list_accounts(principal)]
    return AccountListResponse(accounts=accounts, count=len(accounts))


@router.get("/api/admin/accounts/{account_id}", response_model=AccountResponse)
def admin_get_account(
    account_id: str,
    principal: Principal = Depends(get_principal),
) -> AccountResponse:
    """Get one account (admin, or the owner)."""
    return AccountResponse.model_validate(get_account(principal, account_id))


@router.patch("/api/admin/accounts/{account_id}", response_model=AccountResponse)
def admin_update_account(
    account_id: str,
    body: AccountFlagsUpdate,
    principal: Principal = Depends(get_principal),
    config: AppConfig = Depends(get_config),
) -> AccountResponse:
    """Grant or revoke access/admin flags (admin)."""
    account = set_account_flags(
        principal,
        account_id,
        has_access=body.has_access,
        is_admin=body.is_admin,
        revoke_sessions=config.auth.revoke_sessions_on_access_change,
    )
    return AccountResponse.model_validate(account)
