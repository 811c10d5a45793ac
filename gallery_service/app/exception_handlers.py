"""Global exception handlers for the gallery application.

Every error that escapes a route is answered with the HTML error page, so
browsers never see a bare JSON body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from gallery_service.core.exceptions import AppException
from gallery_service.features.gallery.templating import render_error

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error."
INVALID_REQUEST = "Invalid request."


def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def app_exception_handler(request: Request, exc: AppException) -> Response:
    """Render an AppException with its own status and message."""
    logger.warning(
        "Application exception occurred",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    return render_error(request, exc.detail, exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Render routing errors (unknown path, wrong method) as the error page."""
    message = exc.detail if isinstance(exc.detail, str) else exc.__class__.__name__
    response = render_error(request, message, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """Render malformed request input as a 400 page."""
    logger.info(
        "Request validation failed",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "errors": [
                {"loc": list(err.get("loc", ())), "type": err.get("type")}
                for err in exc.errors()
            ],
        },
    )
    return render_error(request, INVALID_REQUEST, status.HTTP_400_BAD_REQUEST)


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Log unexpected exceptions with traceback and render a 500 page."""
    logger.exception(
        "Unhandled exception occurred",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    return render_error(request, INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


def configure_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers configured")
