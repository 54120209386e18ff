"""FastAPI application factory.

Main entry point for the EduNotes Web API.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from edunotes import __version__
from edunotes.config.app_config import AppConfig, load_app_config, require_secret_key
from edunotes.core.errors import (
    AuthenticationError,
    AuthorizationError,
    EduNotesError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from edunotes.core.mailer import LinkSender, build_link_sender
from edunotes.core.storage import FileStorage, LocalFileStorage
from edunotes.db.database import init_db
from edunotes.web.routes import (
    accounts_router,
    auth_router,
    dashboard_router,
    health_router,
    notes_router,
    subjects_router,
    videos_router,
)

logger = structlog.get_logger(__name__)

# Error class -> HTTP status (most specific first)
ERROR_STATUS: list[tuple[type[EduNotesError], int]] = [
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ValidationError, 422),
    (UpstreamError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config: AppConfig = app.state.config
    logger.info(
        "api.startup",
        db_path=config.database.path,
        mail_backend=config.mail.backend,
        storage_root=str(Path(config.storage.root).absolute()),
        revoke_sessions=config.auth.revoke_sessions_on_access_change,
    )
    yield


async def handle_edunotes_error(request: Request, exc: EduNotesError) -> JSONResponse:
    """Turn a rejected operation into a JSON error response."""
    status_code = 400
    for error_class, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            status_code = code
            break

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    logger.info(
        "api.request_rejected",
        path=request.url.path,
        status=status_code,
        reason=exc.reason,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "reason": exc.reason},
        headers=headers,
    )


def create_app(
    config: AppConfig | None = None,
    link_sender: LinkSender | None = None,
    storage: FileStorage | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config. Defaults to load_app_config()
        link_sender: Sign-in link delivery. Defaults to mail.backend
        storage: PDF storage. Defaults to local storage from config

    Returns:
        Configured FastAPI app instance

    Raises:
        ValueError: If auth.secret_key is missing or too short
    """
    config = config or load_app_config()
    require_secret_key(config.auth)
    init_db(Path(config.database.path))

    app = FastAPI(
        title="EduNotes API",
        description="Subject-organized notes and videos with admin-approved access",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.link_sender = link_sender or build_link_sender(config.mail)
    app.state.storage = storage or LocalFileStorage.from_config(config.storage)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.auth.public_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EduNotesError, handle_edunotes_error)

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(accounts_router)
    app.include_router(dashboard_router)
    app.include_router(subjects_router)
    app.include_router(notes_router)
    app.include_router(videos_router)

    # Uploaded PDFs (public URLs returned by LocalFileStorage)
    files_dir = Path(config.storage.root)
    files_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/files", StaticFiles(directory=files_dir), name="files")

    return app
