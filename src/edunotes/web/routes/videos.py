"""Video endpoints (YouTube links)."""

from fastapi import APIRouter, Depends, status

from edunotes.core.authorization import Principal
from edunotes.core.content import create_video, delete_video, list_videos
from edunotes.web.deps import get_principal
from edunotes.web.schemas import VideoCreate, VideoListResponse, VideoResponse

router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("", response_model=VideoListResponse)
def read_videos(
    subject_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> VideoListResponse:
    """List videos newest first. Empty for accounts without access."""
    videos = [VideoResponse.model_validate(v) for v in list_videos(principal, subject_id)]
    return VideoListResponse(videos=videos, count=len(videos))


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
def add_video(
    body: VideoCreate,
    principal: Principal = Depends(get_principal),
) -> VideoResponse:
    """Add a YouTube video to a subject (admin)."""
    video = create_video(principal, body.subject_id, body.title, body.youtube_url)
    return VideoResponse.model_validate(video)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_video(
    video_id: str,
    principal: Principal = Depends(get_principal),
) -> None:
    """Delete a video (admin)."""
    delete_video(principal, video_id)
