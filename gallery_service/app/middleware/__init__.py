"""Middleware stack for the gallery application.

Execution order (outermost first):

1. RequestIDMiddleware: X-Request-ID in and out, request_id in log context
2. MetricsMiddleware: request counts and durations per route template
3. CORSMiddleware: cross-origin access for the configured origins
4. RequestSizeLimitMiddleware: 413 for bodies above the upload limit
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from .metrics import MetricsMiddleware
from .request_id import RequestIDMiddleware
from .size_limit import MULTIPART_OVERHEAD, RequestSizeLimitMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from gallery_service.core.settings.app import AppSettings

logger = logging.getLogger(__name__)

__all__ = [
    "MetricsMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "configure_middleware",
]


def configure_middleware(app: FastAPI, app_settings: AppSettings) -> None:
    """Install the middleware stack.

    Middleware is applied in reverse order: the last one added runs first.

    Args:
        app: FastAPI application instance
        app_settings: Application settings (CORS origins, upload limit)
    """
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_size=app_settings.max_upload_size_bytes + MULTIPART_OVERHEAD,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=app_settings.cors_allow_methods,
        allow_headers=app_settings.cors_allow_headers,
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    logger.debug(
        "Middleware configured",
        extra={
            "cors_origins": app_settings.cors_origins,
            "max_upload_size_bytes": app_settings.max_upload_size_bytes,
        },
    )
