"""Dashboard endpoint."""

from fastapi import APIRouter, Depends

from edunotes.core.authorization import Principal
from edunotes.core.dashboard import load_dashboard
from edunotes.web.deps import get_principal
from edunotes.web.schemas import (
    DashboardResponse,
    NoteResponse,
    SubjectSummaryResponse,
    VideoResponse,
)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def read_dashboard(principal: Principal = Depends(get_principal)) -> DashboardResponse:
    """Subjects with counts plus recent notes and videos.

    Accounts waiting for approval get access_pending=true and no content.
    """
    dashboard = await load_dashboard(principal)
    return DashboardResponse(
        access_pending=dashboard.access_pending,
        subjects=[SubjectSummaryResponse.model_validate(s) for s in dashboard.subjects],
        recent_notes=[NoteResponse.model_validate(n) for n in dashboard.recent_notes],
        recent_videos=[VideoResponse.model_validate(v) for v in dashboard.recent_videos],
    )
