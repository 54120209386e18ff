"""Passwordless sign-in endpoints."""

import structlog
from fastapi import APIRouter, Depends, Response, status
from starlette.concurrency import run_in_threadpool

from edunotes.config.app_config import AppConfig
from edunotes.core.auth import SignInResult, request_sign_in_link, verify_sign_in_link
from edunotes.core.mailer import LinkSender
from edunotes.web.deps import get_config, get_link_sender
from edunotes.web.schemas import (
    AccountResponse,
    SessionResponse,
    SignInAccepted,
    SignInRequest,
    VerifyRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])


def _session_response(result: SignInResult, response: Response, config: AppConfig) -> SessionResponse:
    """Set the session cookie and build the response body."""
    max_age = max(60, config.auth.session_ttl_minutes * 60)
    response.set_cookie(
        key=config.auth.cookie_name,
        value=result.session_token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=config.auth.public_base_url.startswith("https://"),
    )
    return SessionResponse(
        access_token=result.session_token,
        expires_at=result.expires_at.isoformat(),
        account=AccountResponse.model_validate(result.account),
    )


@router.post(
    "/api/auth/sign-in",
    response_model=SignInAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def sign_in(
    body: SignInRequest,
    config: AppConfig = Depends(get_config),
    sender: LinkSender = Depends(get_link_sender),
) -> SignInAccepted:
    """Send a one-time sign-in link to the given email."""
    await run_in_threadpool(request_sign_in_link, body.email, sender, config.auth)
    return SignInAccepted()


@router.post("/api/auth/verify", response_model=SessionResponse)
async def verify(
    body: VerifyRequest,
    response: Response,
    config: AppConfig = Depends(get_config),
) -> SessionResponse:
    """Exchange a sign-in token for a session."""
    result = await run_in_threadpool(verify_sign_in_link, body.token, config.auth)
    return _session_response(result, response, config)


@router.get("/auth/verify", response_model=SessionResponse)
async def verify_link(
    token: str,
    response: Response,
    config: AppConfig = Depends(get_config),
) -> SessionResponse:
    """Target of the emailed link: same as POST /api/auth/verify."""
    result = await run_in_threadpool(verify_sign_in_link, token, config.auth)
    return _session_response(result, response, config)


@router.post("/api/auth/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(response: Response, config: AppConfig = Depends(get_config)) -> Response:
    """Clear the session cookie."""
    response.delete_cookie(config.auth.cookie_name)
    response.status_code = status.HTTP_204_NO_CONTENT
    return response
