"""Repository functions for subjects, notes and videos.

Provides CRUD operations for the content tables. Notes and videos are
read joined with their subject name. Authorization is applied by
edunotes.core.content, never here.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

import structlog

from edunotes.db.database import get_db, new_id, utcnow_iso

logger = structlog.get_logger(__name__)


class MissingSubjectError(Exception):
    """Raised when a note/video references a subject that does not exist."""

    def __init__(self, subject_id: str):
        self.subject_id = subject_id
        super().__init__(f"Subject not found: {subject_id}")


@dataclass
class SubjectRecord:
    """Subject record from database."""

    id: str
    name: str
    description: str | None
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
        }


@dataclass
class NoteRecord:
    """Note record, joined with its subject name."""

    id: str
    subject_id: str
    title: str
    pdf_url: str
    created_at: str
    subject_name: str | None = None


@dataclass
class VideoRecord:
    """Video record, joined with its subject name."""

    id: str
    subject_id: str
    title: str
    youtube_url: str
    created_at: str
    subject_name: str | None = None


# =============================================================================
# SUBJECTS
# =============================================================================


def insert_subject(name: str, description: str | None) -> SubjectRecord:
    """Insert a new subject and return it."""
    record = SubjectRecord(
        id=new_id(),
        name=name,
        description=description,
        created_at=utcnow_iso(),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO subjects (id, name, description, created_at) VALUES (?, ?, ?, ?)",
            (record.id, record.name, record.description, record.created_at),
        )

    logger.debug("subjects.inserted", subject_id=record.id)
    return record


def get_subject_by_id(subject_id: str) -> SubjectRecord | None:
    """Get subject by ID, None if not found."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM subjects WHERE id = ?", (subject_id,)
        ).fetchone()

    return _row_to_subject(row) if row is not None else None


def get_subject_by_name(name: str) -> SubjectRecord | None:
    """Get the first subject with this exact name."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM subjects WHERE name = ? ORDER BY created_at LIMIT 1",
            (name,),
        ).fetchone()

    return _row_to_subject(row) if row is not None else None


def get_all_subjects() -> list[SubjectRecord]:
    """Get all subjects ordered by name."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM subjects ORDER BY name COLLATE NOCASE, created_at"
        ).fetchall()

    return [_row_to_subject(row) for row in rows]


def update_subject(subject_id: str, name: str, description: str | None) -> bool:
    """Update a subject's name and description.

    Returns:
        True if updated, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE subjects SET name = ?, description = ? WHERE id = ?",
            (name, description, subject_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("subjects.updated", subject_id=subject_id)
    return updated


def delete_subject(subject_id: str) -> bool:
    """Delete a subject. Notes and videos are removed by ON DELETE CASCADE.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("subjects.deleted", subject_id=subject_id)
    return deleted


# =============================================================================
# NOTES
# =============================================================================


def insert_note(subject_id: str, title: str, pdf_url: str) -> NoteRecord:
    """Insert a note under an existing subject.

    Raises:
        MissingSubjectError: If subject_id does not exist (FK violation)
    """
    record = NoteRecord(
        id=new_id(),
        subject_id=subject_id,
        title=title,
        pdf_url=pdf_url,
        created_at=utcnow_iso(),
    )
    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO notes (id, subject_id, title, pdf_url, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (record.id, subject_id, title, pdf_url, record.created_at),
            )
    except sqlite3.IntegrityError as e:
        raise MissingSubjectError(subject_id) from e

    logger.debug("notes.inserted", note_id=record.id, subject_id=subject_id)
    return record


def get_notes(subject_id: str | None = None) -> list[NoteRecord]:
    """Get notes newest first, optionally restricted to one subject."""
    sql = """
        SELECT n.*, s.name AS subject_name
        FROM notes n JOIN subjects s ON s.id = n.subject_id
    """
    params: tuple[Any, ...] = ()
    if subject_id is not None:
        sql += " WHERE n.subject_id = ?"
        params = (subject_id,)
    sql += " ORDER BY n.created_at DESC, n.rowid DESC"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_note(row) for row in rows]


def delete_note(note_id: str) -> bool:
    """Delete note by ID.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("notes.deleted", note_id=note_id)
    return deleted


# =============================================================================
# VIDEOS
# =============================================================================


def insert_video(subject_id: str, title: str, youtube_url: str) -> VideoRecord:
    """Insert a video under an existing subject.

    Raises:
        MissingSubjectError: If subject_id does not exist (FK violation)
    """
    record = VideoRecord(
        id=new_id(),
        subject_id=subject_id,
        title=title,
        youtube_url=youtube_url,
        created_at=utcnow_iso(),
    )
    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO videos (id, subject_id, title, youtube_url, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (record.id, subject_id, title, youtube_url, record.created_at),
            )
    except sqlite3.IntegrityError as e:
        raise MissingSubjectError(subject_id) from e

    logger.debug("videos.inserted", video_id=record.id, subject_id=subject_id)
    return record


def get_videos(subject_id: str | None = None) -> list[VideoRecord]:
    """Get videos newest first, optionally restricted to one subject."""
    sql = """
        SELECT v.*, s.name AS subject_name
        FROM videos v JOIN subjects s ON s.id = v.subject_id
    """
    params: tuple[Any, ...] = ()
    if subject_id is not None:
        sql += " WHERE v.subject_id = ?"
        params = (subject_id,)
    sql += " ORDER BY v.created_at DESC, v.rowid DESC"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_video(row) for row in rows]


def delete_video(video_id: str) -> bool:
    """Delete video by ID.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM videos WHERE id = ?", (video_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("videos.deleted", video_id=video_id)
    return deleted


def count_orphans() -> int:
    """Count notes and videos whose subject no longer exists."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT
              (SELECT COUNT(*) FROM notes WHERE subject_id NOT IN (SELECT id FROM subjects))
            + (SELECT COUNT(*) FROM videos WHERE subject_id NOT IN (SELECT id FROM subjects))
            """
        ).fetchone()
    return int(row[0])


def _row_to_subject(row: sqlite3.Row) -> SubjectRecord:
    return SubjectRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        created_at=row["created_at"],
    )


def _row_to_note(row: sqlite3.Row) -> NoteRecord:
    return NoteRecord(
        id=row["id"],
        subject_id=row["subject_id"],
        title=row["title"],
        pdf_url=row["pdf_url"],
        created_at=row["created_at"],
        subject_name=row["subject_name"],
    )


def _row_to_video(row: sqlite3.Row) -> VideoRecord:
    return VideoRecord(
        id=row["id"],
        subject_id=row["subject_id"],
        title=row["title"],
        youtube_url=row["youtube_url"],
        created_at=row["created_at"],
        subject_name=row["subject_name"],
    )
