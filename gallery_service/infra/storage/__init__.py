"""Object storage infrastructure for a single S3-compatible bucket."""

from __future__ import annotations

from .bootstrap import ensure_bucket
from .exceptions import (
    StorageDownloadError,
    StorageError,
    StorageFileNotFoundError,
    StorageNotConfiguredError,
    StoragePermissionError,
    StorageQuotaExceededError,
    StorageTimeoutError,
    StorageUploadError,
    StorageValidationError,
    map_boto_error,
)
from .factory import create_object_store
from .protocol import ObjectStat, ObjectStore, ObjectStream
from .s3 import S3ObjectStore

__all__ = [
    "ObjectStat",
    "ObjectStore",
    "ObjectStream",
    "S3ObjectStore",
    "StorageDownloadError",
    "StorageError",
    "StorageFileNotFoundError",
    "StorageNotConfiguredError",
    "StoragePermissionError",
    "StorageQuotaExceededError",
    "StorageTimeoutError",
    "StorageUploadError",
    "StorageValidationError",
    "create_object_store",
    "ensure_bucket",
    "map_boto_error",
]
