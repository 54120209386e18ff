"""Dashboard aggregation.

Builds the signed-in home view: subjects with their note/video counts,
the most recent notes and the most recent videos. The three reads are
independent and run concurrently.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field

import structlog

from edunotes.core.authorization import Action, EntityKind, Principal, is_allowed
from edunotes.core.content import NoteView, VideoView, list_notes, list_subjects, list_videos
from edunotes.db.content_repository import SubjectRecord

logger = structlog.get_logger(__name__)

RECENT_NOTES = 6
RECENT_VIDEOS = 4


@dataclass
class SubjectSummary:
    """A subject with how much content it holds."""

    id: str
    name: str
    description: str | None
    note_count: int = 0
    video_count: int = 0


@dataclass
class Dashboard:
    """Home view for a signed-in account."""

    access_pending: bool
    subjects: list[SubjectSummary] = field(default_factory=list)
    recent_notes: list[NoteView] = field(default_factory=list)
    recent_videos: list[VideoView] = field(default_factory=list)


def summarize_subjects(
    subjects: list[SubjectRecord],
    notes: list[NoteView],
    videos: list[VideoView],
) -> list[SubjectSummary]:
    """Attach note/video counts to each subject."""
    note_counts = Counter(n.subject_id for n in notes)
    video_counts = Counter(v.subject_id for v in videos)
    return [
        SubjectSummary(
            id=s.id,
            name=s.name,
            description=s.description,
            note_count=note_counts.get(s.id, 0),
            video_count=video_counts.get(s.id, 0),
        )
        for s in subjects
    ]


async def load_dashboard(principal: Principal) -> Dashboard:
    """Load the dashboard for principal.

    Accounts without access get an "access pending" dashboard with no
    content; nothing is fetched for them.
    """
    if not is_allowed(principal, Action.READ, EntityKind.NOTE):
        return Dashboard(access_pending=True)

    subjects, notes, videos = await asyncio.gather(
        asyncio.to_thread(list_subjects, principal),
        asyncio.to_thread(list_notes, principal),
        asyncio.to_thread(list_videos, principal),
    )

    logger.debug(
        "dashboard.loaded",
        account_id=principal.account_id,
        subjects=len(subjects),
        notes=len(notes),
        videos=len(videos),
    )

    return Dashboard(
        access_pending=False,
        subjects=summarize_subjects(subjects, notes, videos),
        recent_notes=notes[:RECENT_NOTES],
        recent_videos=videos[:RECENT_VIDEOS],
    )
