"""FastAPI application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from gallery_service.app.exception_handlers import configure_exception_handlers
from gallery_service.app.lifespan import lifespan
from gallery_service.app.middleware import configure_middleware
from gallery_service.app.router import setup_routers
from gallery_service.core.settings import get_app_settings
from gallery_service.features.gallery.service import KeyClock

if TYPE_CHECKING:
    from gallery_service.core.settings import AppSettings, LoggingSettings, StorageSettings
    from gallery_service.infra.storage.protocol import ObjectStore


def create_app(
    app_settings: AppSettings | None = None,
    storage_settings: StorageSettings | None = None,
    log_settings: LoggingSettings | None = None,
    store: ObjectStore | None = None,
) -> FastAPI:
    """Create and configure the gallery application.

    Settings not passed in are loaded from the environment. Storage settings
    are only read at startup, and only when no ``store`` is supplied.

    Args:
        app_settings: Application settings override.
        storage_settings: Storage settings override.
        log_settings: Logging settings override.
        store: Pre-built object store. The lifespan still calls ``startup()``
            on it and bootstraps the bucket.

    Returns:
        Configured FastAPI application instance.
    """
    if app_settings is None:
        app_settings = get_app_settings()

    app = FastAPI(
        title=app_settings.title,
        version=app_settings.version,
        debug=app_settings.debug,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.app_settings = app_settings
    app.state.service_name = app_settings.service_name
    app.state.max_upload_size_bytes = app_settings.max_upload_size_bytes
    app.state.storage_settings = storage_settings
    app.state.log_settings = log_settings
    app.state.object_store = store
    app.state.key_clock = KeyClock()

    configure_exception_handlers(app)
    configure_middleware(app, app_settings)
    setup_routers(app)

    return app
