"""Modular Pydantic Settings v2 configuration.

One settings model per domain, each read from its own environment prefix:

    APP_*      AppSettings      (listen address, title, upload limit, CORS)
    STORAGE_*  StorageSettings  (endpoint, credentials, bucket)
    LOG_*      LoggingSettings  (level, JSON output, log file)

Import settings via the cached loaders:
    from gallery_service.core.settings import get_storage_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .app import AppSettings
from .loader import (
    clear_settings_cache,
    get_app_settings,
    get_logging_settings,
    get_storage_settings,
)
from .logs import LoggingSettings
from .storage import StorageSettings

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "StorageSettings",
    "clear_settings_cache",
    "get_app_settings",
    "get_logging_settings",
    "get_storage_settings",
]
