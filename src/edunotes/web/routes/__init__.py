"""Route handlers for Web API."""

from edunotes.web.routes.health import router as health_router
from edunotes.web.routes.auth import router as auth_router
from edunotes.web.routes.accounts import router as accounts_router
from edunotes.web.routes.dashboard import router as dashboard_router
from edunotes.web.routes.subjects import router as subjects_router
from edunotes.web.routes.notes import router as notes_router
from edunotes.web.routes.videos import router as videos_router

__all__ = [
    "health_router",
    "auth_router",
    "accounts_router",
    "dashboard_router",
    "subjects_router",
    "notes_router",
    "videos_router",
]
