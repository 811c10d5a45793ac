"""Request size limit middleware."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.requests import Request

from gallery_service.features.gallery.templating import render_error
from gallery_service.infra.metrics.prometheus import gallery_uploads_rejected_total

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

# Room for the multipart boundary and part headers around the file bytes
MULTIPART_OVERHEAD = 64 * 1024


class RequestSizeLimitMiddleware:
    """Reject requests whose declared Content-Length exceeds the limit.

    Pure ASGI middleware: the check happens on headers alone, before any
    of the body is read, and rejected requests get the HTML error page.
    """

    def __init__(self, app: ASGIApp, max_size: int = 100 * 1024 * 1024) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application.
            max_size: Maximum request body size in bytes.
        """
        self.app = app
        self.max_size = max_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = self._content_length(scope)
        if content_length is not None and content_length > self.max_size:
            gallery_uploads_rejected_total.labels(reason="too_large").inc()
            response = render_error(
                Request(scope, receive),
                f"Request size {content_length} exceeds maximum {self.max_size} bytes.",
                413,
            )
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

    @staticmethod
    def _content_length(scope: Scope) -> int | None:
        for header_name, header_value in scope.get("headers", []):
            if header_name == b"content-length":
                try:
                    return int(header_value.decode())
                except (ValueError, UnicodeDecodeError):
                    return None
        return None
