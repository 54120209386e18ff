"""Tests for input validation helpers (F1)."""

import pytest

from edunotes.utils.validators import (
    clean_optional_text,
    extract_youtube_id,
    normalize_email,
    validate_email,
    youtube_thumbnail_url,
)


class TestEmail:
    """Tests for email normalization and validation."""

    def test_normalize_trims_and_lowercases(self):
        assert normalize_email("  Ana.Garcia@Example.COM ") == "ana.garcia@example.com"

    @pytest.mark.parametrize(
        "email",
        ["user@example.com", "first.last+tag@sub.example.org", "a_b@x.io"],
    )
    def test_valid_emails(self, email):
        assert validate_email(email) is True

    @pytest.mark.parametrize(
        "email",
        ["", "plainaddress", "@example.com", "user@", "user@example", "user name@example.com"],
    )
    def test_invalid_emails(self, email):
        assert validate_email(email) is False


class TestCleanOptionalText:
    def test_blank_becomes_none(self):
        assert clean_optional_text("   ") is None
        assert clean_optional_text(None) is None

    def test_text_is_trimmed(self):
        assert clean_optional_text("  Algebra  ") == "Algebra"


class TestYoutube:
    """Tests for YouTube link parsing."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=WUvTyaaNkzM",
            "https://youtube.com/watch?feature=share&v=WUvTyaaNkzM",
            "https://youtu.be/WUvTyaaNkzM",
            "https://www.youtube.com/embed/WUvTyaaNkzM",
            "https://www.youtube.com/shorts/WUvTyaaNkzM",
            "https://m.youtube.com/watch?v=WUvTyaaNkzM",
            "youtu.be/WUvTyaaNkzM",
        ],
    )
    def test_extracts_video_id(self, url):
        assert extract_youtube_id(url) == "WUvTyaaNkzM"

    @pytest.mark.parametrize(
        "url",
        ["", "https://example.com/video", "https://vimeo.com/12345678", "not a url"],
    )
    def test_non_youtube_returns_none(self, url):
        assert extract_youtube_id(url) is None

    def test_thumbnail_url(self):
        assert (
            youtube_thumbnail_url("WUvTyaaNkzM")
            == "https://img.youtube.com/vi/WUvTyaaNkzM/maxresdefault.jpg"
        )
