"""Configuration package for EduNotes."""

from edunotes.config.app_config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    MailConfig,
    StorageConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "MailConfig",
    "StorageConfig",
    "clear_config_cache",
    "load_app_config",
]
