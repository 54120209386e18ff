"""Subjects, notes and videos.

Responsibilities:
- CRUD orchestration for the three content entities
- Input validation (required names/titles, PDF uploads, YouTube links)
- Authorization at every entry point: reads of notes/videos return an
  empty list without access, every write requires admin
- Sample content seeding

Deleting a subject removes its notes and videos (ON DELETE CASCADE).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from edunotes.core.authorization import (
    Action,
    EntityKind,
    Principal,
    authorize,
    visible_rows,
)
from edunotes.core.errors import EduNotesError, NotFoundError, ValidationError
from edunotes.core.storage import FileStorage, check_pdf_upload, random_pdf_destination
from edunotes.db import content_repository as repo
from edunotes.db.content_repository import (
    MissingSubjectError,
    NoteRecord,
    SubjectRecord,
    VideoRecord,
)
from edunotes.utils.validators import (
    clean_optional_text,
    extract_youtube_id,
    youtube_thumbnail_url,
)

logger = structlog.get_logger(__name__)

NAME_MAX_LENGTH = 200
TITLE_MAX_LENGTH = 300


@dataclass
class NoteView:
    """A note as shown to readers."""

    id: str
    subject_id: str
    subject_name: str | None
    title: str
    pdf_url: str
    created_at: str

    @classmethod
    def from_record(cls, record: NoteRecord) -> NoteView:
        return cls(
            id=record.id,
            subject_id=record.subject_id,
            subject_name=record.subject_name,
            title=record.title,
            pdf_url=record.pdf_url,
            created_at=record.created_at,
        )


@dataclass
class VideoView:
    """A video as shown to readers, with its YouTube thumbnail."""

    id: str
    subject_id: str
    subject_name: str | None
    title: str
    youtube_url: str
    youtube_id: str | None
    thumbnail_url: str | None
    created_at: str

    @classmethod
    def from_record(cls, record: VideoRecord) -> VideoView:
        video_id = extract_youtube_id(record.youtube_url)
        return cls(
            id=record.id,
            subject_id=record.subject_id,
            subject_name=record.subject_name,
            title=record.title,
            youtube_url=record.youtube_url,
            youtube_id=video_id,
            thumbnail_url=youtube_thumbnail_url(video_id) if video_id else None,
            created_at=record.created_at,
        )


# =============================================================================
# VALIDATION
# =============================================================================


def _required_text(field: str, value: str | None, max_length: int) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(field, "required", f"{field.capitalize()} is required")
    if len(cleaned) > max_length:
        raise ValidationError(field, "too_long")
    return cleaned


def _require_subject(subject_id: str) -> SubjectRecord:
    if not subject_id:
        raise ValidationError("subject_id", "required", "Subject is required")
    subject = repo.get_subject_by_id(subject_id)
    if subject is None:
        raise NotFoundError("subject", subject_id)
    return subject


# =============================================================================
# SUBJECTS
# =============================================================================


def list_subjects(principal: Principal) -> list[SubjectRecord]:
    """List subjects ordered by name (any authenticated account)."""
    return visible_rows(principal, EntityKind.SUBJECT, repo.get_all_subjects())


def get_subject(principal: Principal, subject_id: str) -> SubjectRecord:
    """Get one subject.

    Raises:
        AuthorizationError: If not authenticated
        NotFoundError: If the subject does not exist
    """
    authorize(principal, Action.READ, EntityKind.SUBJECT)
    subject = repo.get_subject_by_id(subject_id)
    if subject is None:
        raise NotFoundError("subject", subject_id)
    return subject


def create_subject(
    principal: Principal,
    name: str,
    description: str | None = None,
) -> SubjectRecord:
    """Create a subject (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        ValidationError: If name is empty
    """
    authorize(principal, Action.CREATE, EntityKind.SUBJECT)
    subject = repo.insert_subject(
        _required_text("name", name, NAME_MAX_LENGTH),
        clean_optional_text(description),
    )
    logger.info("content.subject_created", by=principal.account_id, subject_id=subject.id)
    return subject


def update_subject(
    principal: Principal,
    subject_id: str,
    name: str,
    description: str | None = None,
) -> SubjectRecord:
    """Rename/redescribe a subject (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        ValidationError: If name is empty
        NotFoundError: If the subject does not exist
    """
    authorize(principal, Action.UPDATE, EntityKind.SUBJECT)
    cleaned_name = _required_text("name", name, NAME_MAX_LENGTH)
    cleaned_description = clean_optional_text(description)

    if not repo.update_subject(subject_id, cleaned_name, cleaned_description):
        raise NotFoundError("subject", subject_id)

    logger.info("content.subject_updated", by=principal.account_id, subject_id=subject_id)
    subject = repo.get_subject_by_id(subject_id)
    if subject is None:
        raise NotFoundError("subject", subject_id)
    return subject


def delete_subject(principal: Principal, subject_id: str) -> None:
    """Delete a subject and, by cascade, all its notes and videos (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        NotFoundError: If the subject does not exist
    """
    authorize(principal, Action.DELETE, EntityKind.SUBJECT)
    if not repo.delete_subject(subject_id):
        raise NotFoundError("subject", subject_id)
    logger.info("content.subject_deleted", by=principal.account_id, subject_id=subject_id)


# =============================================================================
# NOTES
# =============================================================================


def list_notes(principal: Principal, subject_id: str | None = None) -> list[NoteView]:
    """List notes newest first, joined with subject name.

    Empty for accounts without access.
    """
    notes = visible_rows(principal, EntityKind.NOTE, repo.get_notes(subject_id))
    return [NoteView.from_record(n) for n in notes]


def create_note(
    principal: Principal,
    subject_id: str,
    title: str,
    pdf_url: str,
) -> NoteView:
    """Create a note pointing at an already-stored PDF (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        ValidationError: If title or pdf_url is empty
        NotFoundError: If the subject does not exist
    """
    authorize(principal, Action.CREATE, EntityKind.NOTE)
    cleaned_title = _required_text("title", title, TITLE_MAX_LENGTH)
    cleaned_url = _required_text("pdf_url", pdf_url, 2000)
    subject = _require_subject(subject_id)

    try:
        record = repo.insert_note(subject.id, cleaned_title, cleaned_url)
    except MissingSubjectError as e:
        # Subject deleted between the check and the insert
        raise NotFoundError("subject", subject_id) from e

    record.subject_name = subject.name
    logger.info("content.note_created", by=principal.account_id, note_id=record.id)
    return NoteView.from_record(record)


def upload_note(
    principal: Principal,
    subject_id: str,
    title: str,
    filename: str | None,
    data: bytes | None,
    storage: FileStorage,
    max_bytes: int,
) -> NoteView:
    """Store a PDF and create a note for it (admin-only).

    Validation happens before anything is uploaded. If the note insert
    then fails, the uploaded file is removed again.

    Raises:
        AuthorizationError: If principal is not an admin
        ValidationError: If title/file is missing or the file is not a PDF
        NotFoundError: If the subject does not exist
        UpstreamError: If storage fails
    """
    authorize(principal, Action.CREATE, EntityKind.NOTE)
    _required_text("title", title, TITLE_MAX_LENGTH)
    pdf_bytes = check_pdf_upload(filename, data, max_bytes)
    _require_subject(subject_id)

    destination = random_pdf_destination()
    pdf_url = storage.upload(pdf_bytes, destination, "application/pdf")
    try:
        return create_note(principal, subject_id, title, pdf_url)
    except EduNotesError:
        # Subject removed after the upload: drop the stored file
        storage.delete(destination)
        raise


def delete_note(principal: Principal, note_id: str) -> None:
    """Delete a note (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        NotFoundError: If the note does not exist
    """
    authorize(principal, Action.DELETE, EntityKind.NOTE)
    if not repo.delete_note(note_id):
        raise NotFoundError("note", note_id)
    logger.info("content.note_deleted", by=principal.account_id, note_id=note_id)


# =============================================================================
# VIDEOS
# =============================================================================


def list_videos(principal: Principal, subject_id: str | None = None) -> list[VideoView]:
    """List videos newest first, joined with subject name.

    Empty for accounts without access.
    """
    videos = visible_rows(principal, EntityKind.VIDEO, repo.get_videos(subject_id))
    return [VideoView.from_record(v) for v in videos]


def create_video(
    principal: Principal,
    subject_id: str,
    title: str,
    youtube_url: str,
) -> VideoView:
    """Create a video linking to YouTube (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        ValidationError: If title is empty or the URL is not a YouTube link
        NotFoundError: If the subject does not exist
    """
    authorize(principal, Action.CREATE, EntityKind.VIDEO)
    cleaned_title = _required_text("title", title, TITLE_MAX_LENGTH)
    cleaned_url = _required_text("youtube_url", youtube_url, 2000)
    if extract_youtube_id(cleaned_url) is None:
        raise ValidationError("youtube_url", "not_youtube", "Not a YouTube video URL")
    subject = _require_subject(subject_id)

    try:
        record = repo.insert_video(subject.id, cleaned_title, cleaned_url)
    except MissingSubjectError as e:
        raise NotFoundError("subject", subject_id) from e

    record.subject_name = subject.name
    logger.info("content.video_created", by=principal.account_id, video_id=record.id)
    return VideoView.from_record(record)


def delete_video(principal: Principal, video_id: str) -> None:
    """Delete a video (admin-only).

    Raises:
        AuthorizationError: If principal is not an admin
        NotFoundError: If the video does not exist
    """
    authorize(principal, Action.DELETE, EntityKind.VIDEO)
    if not repo.delete_video(video_id):
        raise NotFoundError("video", video_id)
    logger.info("content.video_deleted", by=principal.account_id, video_id=video_id)


# =============================================================================
# SAMPLE DATA
# =============================================================================

SAMPLE_CONTENT: list[dict[str, Any]] = [
    {
        "name": "Mathematics",
        "description": "Advanced mathematical concepts and problem solving",
        "notes": [
            ("Calculus Fundamentals", "https://example.com/calculus.pdf"),
            ("Linear Algebra Basics", "https://example.com/linear-algebra.pdf"),
        ],
        "videos": [
            ("Calculus Explained", "https://www.youtube.com/watch?v=WUvTyaaNkzM"),
            ("Linear Algebra Visualization", "https://www.youtube.com/watch?v=fNk_zzaMoSs"),
        ],
    },
    {
        "name": "Physics",
        "description": "Fundamental principles of physics and their applications",
        "notes": [
            ("Quantum Mechanics Introduction", "https://example.com/quantum.pdf"),
            ("Thermodynamics Principles", "https://example.com/thermo.pdf"),
        ],
        "videos": [
            ("Quantum Physics Overview", "https://www.youtube.com/watch?v=JhHMJCUmq28"),
            ("Understanding Thermodynamics", "https://www.youtube.com/watch?v=NyOYW07-L5g"),
        ],
    },
    {
        "name": "Computer Science",
        "description": "Programming, algorithms, and software development",
        "notes": [
            ("Data Structures and Algorithms", "https://example.com/dsa.pdf"),
            ("Object-Oriented Programming", "https://example.com/oop.pdf"),
        ],
        "videos": [
            ("Algorithms and Data Structures", "https://www.youtube.com/watch?v=8hly31xKli0"),
            ("Programming Fundamentals", "https://www.youtube.com/watch?v=zOjov-2OZ0E"),
        ],
    },
    {
        "name": "Chemistry",
        "description": "Chemical reactions, molecular structures, and laboratory techniques",
        "notes": [
            ("Organic Chemistry Reactions", "https://example.com/organic.pdf"),
            ("Analytical Chemistry Methods", "https://example.com/analytical.pdf"),
        ],
        "videos": [
            ("Organic Chemistry Basics", "https://www.youtube.com/watch?v=GOBhVLWdqDE"),
            ("Chemical Analysis Techniques", "https://www.youtube.com/watch?v=IeaVgR3q18Q"),
        ],
    },
]


def seed_sample_content() -> dict[str, int]:
    """Insert the sample subjects with their notes and videos.

    Operator action (CLI). Subjects that already exist by name are
    skipped together with their content, so running twice adds nothing.

    Returns:
        Counts of inserted subjects, notes and videos
    """
    counts = {"subjects": 0, "notes": 0, "videos": 0}

    for entry in SAMPLE_CONTENT:
        if repo.get_subject_by_name(entry["name"]) is not None:
            continue
        subject = repo.insert_subject(entry["name"], entry["description"])
        counts["subjects"] += 1
        for title, url in entry["notes"]:
            repo.insert_note(subject.id, title, url)
            counts["notes"] += 1
        for title, url in entry["videos"]:
            repo.insert_video(subject.id, title, url)
            counts["videos"] += 1

    logger.info("content.seeded", **counts)
    return counts
