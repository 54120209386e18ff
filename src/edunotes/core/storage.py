"""File storage for uploaded note PDFs.

Stores binaries under a bucket directory and returns a public URL, in the
manner of a hosted storage bucket: upload(data, destination) -> URL.
"""

from __future__ import annotations

import secrets
from pathlib import Path, PurePosixPath
from typing import Protocol

import structlog

from edunotes.config.app_config import StorageConfig
from edunotes.core.errors import UpstreamError, ValidationError

logger = structlog.get_logger(__name__)

PDF_MAGIC = b"%PDF-"


class FileStorage(Protocol):
    """Storage collaborator: persists bytes, returns a retrievable address."""

    def upload(self, data: bytes, destination: str, content_type: str) -> str:
        ...

    def delete(self, destination: str) -> None:
        ...


class LocalFileStorage:
    """Stores files on the local filesystem under root/bucket/."""

    def __init__(self, root: Path, bucket: str, public_base_url: str):
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_config(cls, config: StorageConfig) -> LocalFileStorage:
        return cls(
            root=Path(config.root),
            bucket=config.bucket,
            public_base_url=config.public_base_url,
        )

    @property
    def bucket_dir(self) -> Path:
        return self.root / self.bucket

    def upload(self, data: bytes, destination: str, content_type: str) -> str:
        """Write data to destination (relative to the bucket) and return its URL.

        Raises:
            ValidationError: If destination escapes the bucket
            UpstreamError: If the file cannot be written
        """
        relative = PurePosixPath(*_safe_parts(destination))
        target = self.bucket_dir.joinpath(*relative.parts)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error("storage.upload_failed", destination=str(relative), error=str(e))
            raise UpstreamError("storage_unavailable", f"Could not store file: {e}") from e

        logger.info(
            "storage.uploaded",
            destination=str(relative),
            size=len(data),
            content_type=content_type,
        )
        return self.public_url(str(relative))

    def delete(self, destination: str) -> None:
        """Remove a stored file. Missing files are ignored.

        Raises:
            ValidationError: If destination escapes the bucket
            UpstreamError: If the file exists but cannot be removed
        """
        target = self.bucket_dir.joinpath(*_safe_parts(destination))
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.error("storage.delete_failed", destination=destination, error=str(e))
            raise UpstreamError("storage_unavailable", f"Could not remove file: {e}") from e
        logger.info("storage.deleted", destination=destination)

    def public_url(self, destination: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{destination}"


def _safe_parts(destination: str) -> tuple[str, ...]:
    """Path parts of destination, which must stay inside the bucket."""
    relative = PurePosixPath(destination)
    if relative.is_absolute() or ".." in relative.parts or not relative.parts:
        raise ValidationError("destination", "invalid_path")
    return relative.parts


def random_pdf_destination() -> str:
    """Random object name for an uploaded PDF (pdfs/<random>.pdf)."""
    return f"pdfs/{secrets.token_hex(12)}.pdf"


def check_pdf_upload(filename: str | None, data: bytes | None, max_bytes: int) -> bytes:
    """Validate a note upload before it is stored.

    Returns:
        The validated file content

    Raises:
        ValidationError: If the file is missing, empty, too large or not a PDF
    """
    if not filename or data is None:
        raise ValidationError("file", "required", "A PDF file is required")
    if not filename.lower().endswith(".pdf"):
        raise ValidationError("file", "not_pdf", "Only .pdf files are accepted")
    if len(data) == 0:
        raise ValidationError("file", "empty", "Uploaded file is empty")
    if len(data) > max_bytes:
        raise ValidationError("file", "too_large", f"File exceeds {max_bytes} bytes")
    if not data.startswith(PDF_MAGIC):
        raise ValidationError("file", "not_pdf", "File content is not a PDF")
    return data
