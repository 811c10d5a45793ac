"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from gallery_service.core.settings import get_storage_settings

    settings = get_storage_settings()  # First call: loads and validates
    settings = get_storage_settings()  # Subsequent calls: cached instance

Testing:
    Clear the cache to force a reload after changing the environment:
    get_storage_settings.cache_clear()

    Or construct settings directly:
    settings = StorageSettings(endpoint="localhost", ...)
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .logs import LoggingSettings
from .storage import StorageSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached object storage settings.

    Returns:
        Validated and frozen StorageSettings instance.

    Raises:
        pydantic.ValidationError: If endpoint, credentials or bucket are missing.
    """
    return StorageSettings()  # type: ignore[call-arg]


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_settings_cache() -> None:
    """Drop every cached settings instance (tests and CLI reloads)."""
    get_app_settings.cache_clear()
    get_storage_settings.cache_clear()
    get_logging_settings.cache_clear()
