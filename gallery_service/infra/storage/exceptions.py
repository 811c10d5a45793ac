"""Storage-specific exceptions for S3/MinIO operations.

Every storage failure surfaces as a ``StorageError`` subclass carrying an
HTTP status code and metadata. botocore ``ClientError`` instances are
translated with ``map_boto_error``.

Example:
    try:
        await client.head_object(Bucket=bucket, Key=key)
    except ClientError as e:
        raise map_boto_error(e, operation="stat", key=key) from e
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gallery_service.core.exceptions import AppException

if TYPE_CHECKING:
    from botocore.exceptions import ClientError


class StorageError(AppException):
    """Base exception for all storage-related errors.

    Attributes:
        code: Error code identifier for programmatic error handling.
        message: Human-readable error message.
        status_code: HTTP status code for the error.
        extra: Additional context (bucket, key, backend error code).
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 500,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize storage error.

        Args:
            message: Human-readable error message.
            code: Error code for programmatic handling.
            status_code: HTTP status code (default: 500).
            metadata: Additional error context.
        """
        self.code = code
        self.message = message
        super().__init__(
            status_code=status_code,
            detail=message,
            type=code.lower().replace("_", "-"),
            extra=metadata or {},
        )


class StorageNotConfiguredError(StorageError):
    """Raised when the store client is used before startup() or after shutdown()."""

    def __init__(
        self,
        message: str = "Storage is not initialized",
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_NOT_CONFIGURED",
            status_code=503,
            metadata=metadata,
        )


class StorageFileNotFoundError(StorageError):
    """Raised when a requested object (or the bucket) does not exist."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_NOT_FOUND",
            status_code=404,
            metadata=metadata,
        )


class StorageUploadError(StorageError):
    """Raised when writing an object fails for a reason other than a mapped S3 error."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            metadata=metadata,
        )


class StorageDownloadError(StorageError):
    """Raised when reading an object body fails."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_DOWNLOAD_ERROR",
            status_code=500,
            metadata=metadata,
        )


class StoragePermissionError(StorageError):
    """Raised when credentials are rejected or lack the required permission."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_PERMISSION_DENIED",
            status_code=403,
            metadata=metadata,
        )


class StorageQuotaExceededError(StorageError):
    """Raised when the store refuses a write because of quota limits."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_QUOTA_EXCEEDED",
            status_code=507,
            metadata=metadata,
        )


class StorageValidationError(StorageError):
    """Raised when the store rejects a request as malformed (bad key, bad bucket name)."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_VALIDATION_ERROR",
            status_code=400,
            metadata=metadata,
        )


class StorageTimeoutError(StorageError):
    """Raised when the store times out or throttles a request."""

    def __init__(
        self,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORAGE_TIMEOUT",
            status_code=504,
            metadata=metadata,
        )


NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "404", "NotFound"})

PERMISSION_CODES = frozenset(
    {
        "AccessDenied",
        "403",
        "Forbidden",
        "ExpiredToken",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "InvalidToken",
    }
)

TIMEOUT_CODES = frozenset({"RequestTimeout", "RequestTimeTooSkewed", "SlowDown"})

QUOTA_CODES = frozenset({"QuotaExceeded", "TooManyBuckets", "AccountProblem"})

VALIDATION_CODES = frozenset(
    {
        "InvalidRequest",
        "InvalidArgument",
        "MalformedXML",
        "InvalidBucketName",
        "KeyTooLongError",
        "MetadataTooLarge",
    }
)


def error_code_of(error: ClientError) -> str:
    """Extract the S3 error code from a botocore ClientError."""
    return str(error.response.get("Error", {}).get("Code", "Unknown"))


def map_boto_error(
    error: ClientError,
    operation: str,
    key: str | None = None,
) -> StorageError:
    """Map a botocore ClientError to a domain-specific StorageError.

    HEAD requests carry no error body, so their failures arrive with the
    bare HTTP status as the code ("404", "403"); both spellings are mapped.

    Args:
        error: The botocore ClientError to map.
        operation: The storage operation being performed (e.g. "upload", "stat").
        key: Optional object key or bucket name being operated on.

    Returns:
        StorageError: Appropriate domain-specific storage exception.

    Error Code Mappings:
        - NoSuchKey, NoSuchBucket, 404 -> StorageFileNotFoundError (404)
        - AccessDenied, InvalidAccessKeyId, 403, ... -> StoragePermissionError (403)
        - RequestTimeout, SlowDown, ... -> StorageTimeoutError (504)
        - QuotaExceeded, TooManyBuckets, ... -> StorageQuotaExceededError (507)
        - InvalidArgument, InvalidBucketName, ... -> StorageValidationError (400)
        - Others -> StorageError (500)
    """
    error_code = error_code_of(error)
    error_message = error.response.get("Error", {}).get("Message") or str(error)

    metadata: dict[str, Any] = {
        "operation": operation,
        "s3_error_code": error_code,
        "s3_error_message": error_message,
        "request_id": error.response.get("ResponseMetadata", {}).get("RequestId"),
    }
    if key:
        metadata["key"] = key

    message = f"{operation.capitalize()} failed: {error_message}"

    if error_code in NOT_FOUND_CODES:
        return StorageFileNotFoundError(message=message, metadata=metadata)

    if error_code in PERMISSION_CODES:
        return StoragePermissionError(message=message, metadata=metadata)

    if error_code in TIMEOUT_CODES:
        return StorageTimeoutError(
            message=f"{operation.capitalize()} timed out: {error_message}",
            metadata=metadata,
        )

    if error_code in QUOTA_CODES:
        return StorageQuotaExceededError(message=message, metadata=metadata)

    if error_code in VALIDATION_CODES:
        return StorageValidationError(message=message, metadata=metadata)

    return StorageError(
        message=message,
        code="STORAGE_ERROR",
        status_code=500,
        metadata=metadata,
    )
