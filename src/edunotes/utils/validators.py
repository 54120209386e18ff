"""Input validation helpers.

Functions:
- normalize_email(email) -> str: Trim and lower-case an email
- validate_email(email) -> bool: Basic email format check
- clean_optional_text(value) -> str | None: Trim; blank becomes None
- extract_youtube_id(url) -> str | None: Video ID from a YouTube link
- youtube_thumbnail_url(video_id) -> str: Thumbnail for a video ID
"""

from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

# youtube.com/watch?v=ID, youtu.be/ID, youtube.com/embed/ID, youtube.com/shorts/ID
YOUTUBE_ID_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.|m\.)?"
    r"(?:youtube\.com/(?:watch\?(?:[^#]*&)?v=|embed/|shorts/)|youtu\.be/)"
    r"([A-Za-z0-9_-]{6,})"
)

THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def normalize_email(email: str) -> str:
    """Normalize an email for storage and lookup."""
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    """Validate email format. Empty string is invalid (sign-in needs one).

    Args:
        email: Email address to validate

    Returns:
        True if it looks like an email address
    """
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))


def clean_optional_text(value: str | None) -> str | None:
    """Trim text; empty or whitespace-only becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def extract_youtube_id(url: str) -> str | None:
    """Extract the video ID from a YouTube URL.

    Examples:
        "https://www.youtube.com/watch?v=WUvTyaaNkzM" -> "WUvTyaaNkzM"
        "https://youtu.be/WUvTyaaNkzM" -> "WUvTyaaNkzM"
        "https://example.com/video" -> None
    """
    if not url:
        return None
    match = YOUTUBE_ID_PATTERN.match(url.strip())
    return match.group(1) if match else None


def youtube_thumbnail_url(video_id: str) -> str:
    """Thumbnail image URL for a YouTube video ID."""
    return THUMBNAIL_URL.format(video_id=video_id)
