"""Request-scoped dependencies for route handlers.

Identity is taken from either:
- Authorization: Bearer <session token> (scripts / API clients)
- The httpOnly session cookie set by the verify endpoints
"""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edunotes.config.app_config import AppConfig
from edunotes.core.auth import resolve_principal
from edunotes.core.authorization import Principal
from edunotes.core.mailer import LinkSender
from edunotes.core.storage import FileStorage

_bearer = HTTPBearer(auto_error=False)


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_link_sender(request: Request) -> LinkSender:
    return request.app.state.link_sender


def get_storage(request: Request) -> FileStorage:
    return request.app.state.storage


def get_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    """Authenticate the request and load its Principal.

    Raises:
        AuthenticationError: If no valid session is presented
    """
    config = get_config(request)

    token = ""
    if credentials is not None and credentials.credentials:
        token = credentials.credentials
    if not token:
        token = request.cookies.get(config.auth.cookie_name, "")

    return resolve_principal(token, config.auth)
