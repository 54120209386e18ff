"""Pydantic schemas for the Web API.

Serialization models for accounts, sign-in, subjects, notes, videos and
the dashboard.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class SignInRequest(BaseModel):
    """Request body for sending a sign-in link."""

    email: str = Field(..., min_length=3, max_length=254)


class SignInAccepted(BaseModel):
    """Response after a sign-in link was requested."""

    message: str = "Check your email for the sign-in link"


class VerifyRequest(BaseModel):
    """Request body for verifying a sign-in link token."""

    token: str = Field(..., min_length=1, max_length=512)


class SessionResponse(BaseModel):
    """Session issued after verifying a sign-in link."""

    access_token: str
    token_type: str = "bearer"
    expires_at: str
    account: AccountResponse


# =============================================================================
# ACCOUNT SCHEMAS
# =============================================================================


class AccountResponse(BaseModel):
    """Response for an account."""

    id: str
    email: str
    has_access: bool
    is_admin: bool
    display_name: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


class AccountListResponse(BaseModel):
    """Response for list of accounts."""

    accounts: list[AccountResponse]
    count: int


class ProfileUpdate(BaseModel):
    """Owner-editable account fields."""

    display_name: str | None = Field(default=None, max_length=100)


class AccountFlagsUpdate(BaseModel):
    """Admin change of access/admin flags."""

    has_access: bool | None = None
    is_admin: bool | None = None


# =============================================================================
# SUBJECT SCHEMAS
# =============================================================================


class SubjectCreate(BaseModel):
    """Request body for creating or updating a subject."""

    name: str = Field(..., max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class SubjectResponse(BaseModel):
    """Response for a subject."""

    id: str
    name: str
    description: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


class SubjectListResponse(BaseModel):
    """Response for list of subjects."""

    subjects: list[SubjectResponse]
    count: int


# =============================================================================
# NOTE / VIDEO SCHEMAS
# =============================================================================


class NoteResponse(BaseModel):
    """Response for a note (joined with its subject name)."""

    id: str
    subject_id: str
    subject_name: str | None = None
    title: str
    pdf_url: str
    created_at: str

    model_config = {"from_attributes": True}


class NoteListResponse(BaseModel):
    """Response for list of notes."""

    notes: list[NoteResponse]
    count: int


class VideoCreate(BaseModel):
    """Request body for adding a video."""

    subject_id: str
    title: str = Field(..., max_length=300)
    youtube_url: str = Field(..., max_length=2000)


class VideoResponse(BaseModel):
    """Response for a video (joined with its subject name)."""

    id: str
    subject_id: str
    subject_name: str | None = None
    title: str
    youtube_url: str
    youtube_id: str | None = None
    thumbnail_url: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


class VideoListResponse(BaseModel):
    """Response for list of videos."""

    videos: list[VideoResponse]
    count: int


# =============================================================================
# DASHBOARD SCHEMAS
# =============================================================================


class SubjectSummaryResponse(BaseModel):
    """A subject with its content counts."""

    id: str
    name: str
    description: str | None = None
    note_count: int
    video_count: int

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    """Home view for the signed-in account."""

    access_pending: bool
    subjects: list[SubjectSummaryResponse] = Field(default_factory=list)
    recent_notes: list[NoteResponse] = Field(default_factory=list)
    recent_videos: list[VideoResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


# =============================================================================
# HEALTH / ERROR SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


SessionResponse.model_rebuild()
