"""Router registry and setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi.staticfiles import StaticFiles

from gallery_service.features.gallery.router import router as gallery_router
from gallery_service.features.health.router import router as health_router
from gallery_service.features.metrics.router import router as metrics_router

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


def setup_routers(app: FastAPI) -> None:
    """Register all feature routers and the static asset mount.

    Args:
        app: FastAPI application instance.
    """
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(gallery_router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    logger.debug("Routers configured", extra={"static_dir": str(STATIC_DIR)})
