"""Metrics middleware for HTTP request instrumentation with trace correlation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from opentelemetry import trace

from gallery_service.infra.metrics.prometheus import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send


class MetricsMiddleware:
    """Collect HTTP request counts, durations and in-flight gauges.

    Labels use the matched route template ("/download/{object_name:path}")
    rather than the raw path, so object keys never become label values.
    Duration covers the whole response, including streamed bodies.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        status_code = 500
        start_time = time.perf_counter()
        http_requests_in_progress.labels(method=method, endpoint="all").inc()

        async def send_with_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            duration = time.perf_counter() - start_time
            endpoint = _route_template(scope)

            exemplar = None
            span_context = trace.get_current_span().get_span_context()
            if span_context.is_valid:
                exemplar = {"trace_id": format(span_context.trace_id, "032x")}

            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                duration, exemplar=exemplar,
            )
            http_requests_total.labels(
                method=method, endpoint=endpoint, status=status_code,
            ).inc(exemplar=exemplar)
            http_requests_in_progress.labels(method=method, endpoint="all").dec()


def _route_template(scope: Scope) -> str:
    route = scope.get("route")
    path = getattr(route, "path", None)
    if path:
        return path
    return "unmatched"
