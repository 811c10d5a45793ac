"""Storage metrics for Prometheus monitoring.

Tracks every object store call the gallery makes:
- Operation counters and timing (list, upload, stat, open, delete, bucket)
- Object size distribution for uploads and opened bodies
- In-flight operation gauge
- Error tracking by type

All metrics are registered with the shared REGISTRY so they are exposed
via the /metrics endpoint.

Usage:
    from gallery_service.infra.storage.metrics import (
        record_operation_success,
        record_operation_error,
    )

    record_operation_success("upload", duration_seconds=1.5, size_bytes=1048576)
    record_operation_error("stat", "StorageFileNotFoundError", duration_seconds=0.02)
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

from gallery_service.infra.metrics.prometheus import REGISTRY

# Storage calls are network round trips: 10ms to 30s
STORAGE_LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

# 1KB to 100MB
STORAGE_SIZE_BUCKETS = (1024, 10240, 102400, 1048576, 10485760, 52428800, 104857600)

storage_operations_total = Counter(
    "storage_operations_total",
    "Total storage operations",
    ["operation", "status"],  # status: success/error
    registry=REGISTRY,
)

storage_operation_duration_seconds = Histogram(
    "storage_operation_duration_seconds",
    "Storage operation duration in seconds",
    ["operation"],
    buckets=STORAGE_LATENCY_BUCKETS,
    registry=REGISTRY,
)

storage_object_size_bytes = Histogram(
    "storage_object_size_bytes",
    "Size of objects uploaded or opened in bytes",
    ["operation"],
    buckets=STORAGE_SIZE_BUCKETS,
    registry=REGISTRY,
)

storage_operations_in_progress = Gauge(
    "storage_operations_in_progress",
    "Number of storage operations currently in flight",
    registry=REGISTRY,
)

storage_errors_total = Counter(
    "storage_errors_total",
    "Storage operation errors by type",
    ["operation", "error_type"],
    registry=REGISTRY,
)

storage_client_initializations = Counter(
    "storage_client_initializations",
    "Number of storage client initializations",
    ["status"],  # success/error
    registry=REGISTRY,
)


def record_operation_success(
    operation: str,
    duration_seconds: float,
    size_bytes: int | None = None,
) -> None:
    """Record a successful storage operation.

    Args:
        operation: The operation type (e.g., 'upload', 'open', 'delete')
        duration_seconds: Operation duration in seconds
        size_bytes: Optional object size in bytes
    """
    storage_operations_total.labels(operation=operation, status="success").inc()
    storage_operation_duration_seconds.labels(operation=operation).observe(duration_seconds)
    if size_bytes is not None:
        storage_object_size_bytes.labels(operation=operation).observe(size_bytes)


def record_operation_error(
    operation: str,
    error_type: str,
    duration_seconds: float,
) -> None:
    """Record a failed storage operation.

    Args:
        operation: The operation type
        error_type: The error class name (e.g., 'StorageTimeoutError')
        duration_seconds: Operation duration in seconds before failure
    """
    storage_operations_total.labels(operation=operation, status="error").inc()
    storage_operation_duration_seconds.labels(operation=operation).observe(duration_seconds)
    storage_errors_total.labels(operation=operation, error_type=error_type).inc()
