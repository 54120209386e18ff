"""Application configuration loader.

Loads configuration from config/edunotes.yaml, merged over built-in
defaults, then applies EDUNOTES_* environment overrides.

Usage:
    from edunotes.config.app_config import load_app_config

    config = load_app_config()
    print(config.database.path)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("config/edunotes.yaml")

# Environment variable -> (section, key, type)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "EDUNOTES_DB_PATH": ("database", "path", str),
    "EDUNOTES_SECRET_KEY": ("auth", "secret_key", str),
    "EDUNOTES_PUBLIC_BASE_URL": ("auth", "public_base_url", str),
    "EDUNOTES_LINK_TTL_MINUTES": ("auth", "link_ttl_minutes", int),
    "EDUNOTES_SESSION_TTL_MINUTES": ("auth", "session_ttl_minutes", int),
    "EDUNOTES_REVOKE_SESSIONS": ("auth", "revoke_sessions_on_access_change", bool),
    "EDUNOTES_STORAGE_ROOT": ("storage", "root", str),
    "EDUNOTES_STORAGE_BASE_URL": ("storage", "public_base_url", str),
    "EDUNOTES_MAIL_BACKEND": ("mail", "backend", str),
    "EDUNOTES_SMTP_HOST": ("mail", "smtp_host", str),
    "EDUNOTES_SMTP_PORT": ("mail", "smtp_port", int),
    "EDUNOTES_SMTP_USER": ("mail", "smtp_user", str),
    "EDUNOTES_SMTP_PASSWORD": ("mail", "smtp_password", str),
    "EDUNOTES_MAIL_FROM": ("mail", "sender", str),
}

# Minimum HS256 key length (RFC 7518 section 3.2)
MIN_SECRET_KEY_BYTES = 32


@dataclass
class DatabaseConfig:
    """Configuration for the SQLite store."""

    path: str = "db/edunotes.db"


@dataclass
class AuthConfig:
    """Configuration for passwordless sign-in and sessions."""

    secret_key: str = ""
    public_base_url: str = "http://localhost:8000"
    link_ttl_minutes: int = 60
    session_ttl_minutes: int = 60 * 24 * 7
    revoke_sessions_on_access_change: bool = False
    cookie_name: str = "edunotes_session"


@dataclass
class StorageConfig:
    """Configuration for uploaded PDF storage."""

    root: str = "data/storage"
    bucket: str = "pdfs"
    public_base_url: str = "http://localhost:8000/files"
    max_upload_mb: int = 20

    @property
    def max_upload_bytes(self) -> int:
        """Upload size limit in bytes."""
        return self.max_upload_mb * 1024 * 1024


@dataclass
class MailConfig:
    """Configuration for sign-in link delivery."""

    backend: str = "log"  # log | smtp
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    sender: str = "no-reply@edunotes.local"
    timeout: int = 10


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    mail: MailConfig = field(default_factory=MailConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/edunotes.db"},
        "auth": {
            "secret_key": "",
            "public_base_url": "http://localhost:8000",
            "link_ttl_minutes": 60,
            "session_ttl_minutes": 60 * 24 * 7,
            "revoke_sessions_on_access_change": False,
            "cookie_name": "edunotes_session",
        },
        "storage": {
            "root": "data/storage",
            "bucket": "pdfs",
            "public_base_url": "http://localhost:8000/files",
            "max_upload_mb": 20,
        },
        "mail": {
            "backend": "log",
            "smtp_host": None,
            "smtp_port": 587,
            "smtp_user": None,
            "smtp_password": None,
            "sender": "no-reply@edunotes.local",
            "timeout": 10,
        },
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override sections into base (one level deep)."""
    result = {section: dict(values) for section, values in base.items()}
    for section, values in (override or {}).items():
        if isinstance(values, dict):
            result.setdefault(section, {}).update(values)
    return result


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply EDUNOTES_* environment variables on top of file/default values."""
    for env_name, (section, key, kind) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        if kind is bool:
            value: Any = _parse_bool(raw)
        elif kind is int:
            value = int(raw)
        else:
            value = raw
        data.setdefault(section, {})[key] = value
        logger.debug("config_env_override", env=env_name, section=section, key=key)
    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database", {})
    auth_data = data.get("auth", {})
    storage_data = data.get("storage", {})
    mail_data = data.get("mail", {})

    database = DatabaseConfig(path=str(db_data.get("path", "db/edunotes.db")))
    auth = AuthConfig(
        secret_key=str(auth_data.get("secret_key") or "").strip(),
        public_base_url=str(auth_data.get("public_base_url", "http://localhost:8000")).rstrip("/"),
        link_ttl_minutes=int(auth_data.get("link_ttl_minutes", 60)),
        session_ttl_minutes=int(auth_data.get("session_ttl_minutes", 60 * 24 * 7)),
        revoke_sessions_on_access_change=bool(
            auth_data.get("revoke_sessions_on_access_change", False)
        ),
        cookie_name=auth_data.get("cookie_name", "edunotes_session"),
    )
    storage = StorageConfig(
        root=str(storage_data.get("root", "data/storage")),
        bucket=storage_data.get("bucket", "pdfs"),
        public_base_url=str(
            storage_data.get("public_base_url", "http://localhost:8000/files")
        ).rstrip("/"),
        max_upload_mb=int(storage_data.get("max_upload_mb", 20)),
    )
    mail = MailConfig(
        backend=mail_data.get("backend", "log"),
        smtp_host=mail_data.get("smtp_host"),
        smtp_port=int(mail_data.get("smtp_port", 587)),
        smtp_user=mail_data.get("smtp_user"),
        smtp_password=mail_data.get("smtp_password"),
        sender=mail_data.get("sender", "no-reply@edunotes.local"),
        timeout=int(mail_data.get("timeout", 10)),
    )

    return AppConfig(database=database, auth=auth, storage=storage, mail=mail)


def load_app_config(
    force_reload: bool = False,
    config_file: Path | None = None,
) -> AppConfig:
    """Load application config (defaults < YAML file < environment).

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternative YAML path. Defaults to config/edunotes.yaml

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    path = config_file or CONFIG_FILE
    data = _get_defaults()

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        file_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.info("using_default_config")

    data = _apply_env_overrides(data)

    config = _parse_config(data)
    if not config.auth.secret_key:
        logger.warning("config.secret_key_missing", env="EDUNOTES_SECRET_KEY")

    _cached_config = config
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None


def require_secret_key(auth: AuthConfig) -> str:
    """Return the session signing key.

    Raises:
        ValueError: If no key is configured or it is too short for HS256
    """
    secret = auth.secret_key
    if not secret:
        raise ValueError("auth.secret_key is not set (EDUNOTES_SECRET_KEY)")
    if len(secret.encode("utf-8")) < MIN_SECRET_KEY_BYTES:
        raise ValueError(f"auth.secret_key must be at least {MIN_SECRET_KEY_BYTES} bytes")
    return secret
