"""Prometheus metrics infrastructure."""

from __future__ import annotations

from .prometheus import (
    REGISTRY,
    gallery_uploads_rejected_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

__all__ = [
    "REGISTRY",
    "gallery_uploads_rejected_total",
    "http_request_duration_seconds",
    "http_requests_in_progress",
    "http_requests_total",
]
