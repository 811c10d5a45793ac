"""S3-compatible object store implementation.

Implements the ObjectStore protocol for MinIO, AWS S3 and other
S3-compatible services using aioboto3. One store instance serves exactly
one bucket, taken from StorageSettings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import (
    NOT_FOUND_CODES,
    StorageDownloadError,
    StorageError,
    StorageNotConfiguredError,
    StorageUploadError,
    error_code_of,
    map_boto_error,
)
from .instrumentation import track_storage_operation
from .metrics import storage_client_initializations
from .protocol import ObjectStat, ObjectStream

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from gallery_service.core.settings.storage import StorageSettings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class S3ObjectStore:
    """Single-bucket object store backed by an aioboto3 S3 client.

    Attributes:
        settings: Storage configuration settings
        bucket: The bucket every operation targets
        is_ready: Whether startup() has completed

    Example:
        store = S3ObjectStore(settings)
        await store.startup()
        stat = await store.put_object("1700000000000-cat.png", data, len(data), "image/png")
        await store.shutdown()
    """

    def __init__(
        self,
        settings: StorageSettings,
        session: aioboto3.Session | None = None,
    ) -> None:
        self.settings = settings
        self._session = session or aioboto3.Session()
        self._client: Any = None
        self._client_context: Any = None

    @property
    def bucket(self) -> str:
        return self.settings.bucket

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    # ========================================================================
    # Lifecycle Management
    # ========================================================================

    async def startup(self) -> None:
        """Open the S3 client and its connection pool."""
        if self._client is not None:
            logger.debug("Object store already initialized")
            return

        logger.info(
            "Initializing object store client",
            extra={
                "bucket": self.bucket,
                "endpoint": self.settings.endpoint_url,
                "region": self.settings.region,
            },
        )

        try:
            boto_config = Config(
                retries={
                    "max_attempts": self.settings.max_retries,
                    "mode": "standard",
                },
                connect_timeout=self.settings.timeout,
                read_timeout=self.settings.timeout,
                max_pool_connections=self.settings.max_pool_connections,
                s3={"addressing_style": "path"},
            )
            self._client_context = self._session.client(
                "s3",
                **self.settings.get_boto3_config(),
                config=boto_config,
            )
            self._client = await self._client_context.__aenter__()
        except Exception as e:
            storage_client_initializations.labels(status="error").inc()
            self._client_context = None
            logger.exception("Failed to initialize object store client", extra={"error": str(e)})
            raise StorageError(
                f"Failed to initialize object store client: {e}",
                code="STORAGE_INITIALIZATION_ERROR",
                status_code=503,
                metadata={"endpoint": self.settings.endpoint_url},
            ) from e

        storage_client_initializations.labels(status="success").inc()
        logger.info("Object store client initialized")

    async def shutdown(self) -> None:
        """Close the S3 client."""
        if self._client_context is None:
            logger.debug("Object store not initialized, nothing to shut down")
            return

        try:
            await self._client_context.__aexit__(None, None, None)
        except Exception as e:
            logger.warning(f"Error closing object store client: {e}")
        finally:
            self._client = None
            self._client_context = None

        logger.info("Object store client closed")

    async def health_check(self) -> bool:
        """Check connectivity and credentials with a HEAD on the bucket."""
        if self._client is None:
            return False

        try:
            await self._client.head_bucket(Bucket=self.bucket)
            return True
        except Exception as e:
            logger.warning(
                "Object store health check failed",
                extra={"error": str(e), "bucket": self.bucket},
            )
            return False

    def _ensure_client(self) -> Any:
        if self._client is None:
            msg = "Object store not initialized. Call startup() first."
            raise StorageNotConfiguredError(msg)
        return self._client

    # ========================================================================
    # Bucket Operations
    # ========================================================================

    async def bucket_exists(self) -> bool:
        """Check whether the configured bucket exists.

        Raises:
            StorageError: For anything other than a not-found answer
                (permission denied, unreachable endpoint).
        """
        client = self._ensure_client()

        try:
            async with track_storage_operation("bucket_exists", bucket=self.bucket):
                await client.head_bucket(Bucket=self.bucket)
            return True
        except ClientError as e:
            if error_code_of(e) in NOT_FOUND_CODES:
                return False
            logger.exception("Error checking bucket existence", extra={"error": str(e)})
            raise map_boto_error(e, operation="bucket_exists", key=self.bucket) from e
        except BotoCoreError as e:
            logger.exception("Object store unreachable", extra={"error": str(e)})
            raise StorageError(
                f"Failed to reach object store: {e}",
                code="STORAGE_CONNECTION_ERROR",
                status_code=503,
                metadata={"bucket": self.bucket, "endpoint": self.settings.endpoint_url},
            ) from e

    async def create_bucket(self) -> None:
        """Create the configured bucket in the configured region.

        A bucket that already exists and is owned by these credentials is
        not an error.
        """
        client = self._ensure_client()
        region = self.settings.region

        kwargs: dict[str, Any] = {"Bucket": self.bucket}
        # S3 requires CreateBucketConfiguration for regions other than us-east-1
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            async with track_storage_operation("create_bucket", bucket=self.bucket):
                await client.create_bucket(**kwargs)
        except ClientError as e:
            if error_code_of(e) == "BucketAlreadyOwnedByYou":
                logger.warning(f"Bucket {self.bucket} already exists and is owned by you")
                return
            logger.exception("Failed to create bucket", extra={"error": str(e)})
            raise map_boto_error(e, operation="create_bucket", key=self.bucket) from e
        except BotoCoreError as e:
            logger.exception("Unexpected error creating bucket", extra={"error": str(e)})
            raise StorageError(
                f"Failed to create bucket {self.bucket}: {e}",
                code="STORAGE_CREATE_BUCKET_ERROR",
                metadata={"bucket": self.bucket, "region": region},
            ) from e

        logger.info("Bucket created", extra={"bucket": self.bucket, "region": region})

    # ========================================================================
    # Object Operations
    # ========================================================================

    async def list_objects(
        self,
        prefix: str = "",
        recursive: bool = True,
    ) -> AsyncIterator[ObjectStat]:
        """Yield every object under ``prefix``, following continuation tokens.

        Pages are fetched lazily, so a failure on a later page surfaces
        mid-iteration after earlier objects were already yielded.

        Args:
            prefix: Filter by key prefix ("" lists the whole bucket)
            recursive: When False, stop at the first "/" after the prefix
        """
        client = self._ensure_client()

        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if not recursive:
            kwargs["Delimiter"] = "/"

        count = 0
        continuation_token: str | None = None
        while True:
            if continuation_token:
                kwargs["ContinuationToken"] = continuation_token

            try:
                async with track_storage_operation("list", key=prefix, bucket=self.bucket):
                    response = await client.list_objects_v2(**kwargs)
            except ClientError as e:
                logger.exception("Failed to list objects", extra={"error": str(e)})
                raise map_boto_error(e, operation="list", key=prefix or None) from e
            except BotoCoreError as e:
                logger.exception("Unexpected error during list", extra={"error": str(e)})
                raise StorageError(
                    f"Failed to list objects with prefix {prefix!r}: {e}",
                    code="STORAGE_LIST_ERROR",
                    metadata={"prefix": prefix, "bucket": self.bucket},
                ) from e

            for item in response.get("Contents", []):
                count += 1
                yield ObjectStat(
                    key=item.get("Key", ""),
                    size=item.get("Size", 0),
                    last_modified=item.get("LastModified"),
                    etag=item.get("ETag", "").strip('"') or None,
                )

            continuation_token = response.get("NextContinuationToken")
            if not response.get("IsTruncated") or not continuation_token:
                break

        logger.debug(
            "Listed objects",
            extra={"bucket": self.bucket, "prefix": prefix, "count": count},
        )

    async def put_object(
        self,
        key: str,
        data: bytes,
        length: int,
        content_type: str | None = None,
    ) -> ObjectStat:
        """Write ``data`` under ``key`` with the given Content-Type.

        Raises:
            StorageUploadError: If the write fails
        """
        client = self._ensure_client()
        content_type = content_type or DEFAULT_CONTENT_TYPE

        try:
            async with track_storage_operation(
                "upload",
                key=key,
                bucket=self.bucket,
                size_bytes=length,
                content_type=content_type,
            ):
                response = await client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=data,
                    ContentLength=length,
                    ContentType=content_type,
                )
        except ClientError as e:
            logger.exception("Failed to upload object", extra={"error": str(e), "key": key})
            raise map_boto_error(e, operation="upload", key=key) from e
        except BotoCoreError as e:
            logger.exception("Unexpected error during upload", extra={"error": str(e), "key": key})
            raise StorageUploadError(
                f"Failed to upload {key}: {e}",
                metadata={"key": key, "bucket": self.bucket},
            ) from e

        logger.info(
            "Object uploaded",
            extra={"key": key, "bucket": self.bucket, "size_bytes": length},
        )
        return ObjectStat(
            key=key,
            size=length,
            content_type=content_type,
            etag=response.get("ETag", "").strip('"') or None,
        )

    async def stat_object(self, key: str) -> ObjectStat:
        """Read the object's metadata.

        Raises:
            StorageFileNotFoundError: If the object does not exist
            StorageError: For any other failure
        """
        client = self._ensure_client()

        try:
            async with track_storage_operation("stat", key=key, bucket=self.bucket) as ctx:
                response = await client.head_object(Bucket=self.bucket, Key=key)
                ctx["result_size"] = response.get("ContentLength", 0)
        except ClientError as e:
            logger.exception("Failed to stat object", extra={"error": str(e), "key": key})
            raise map_boto_error(e, operation="stat", key=key) from e
        except BotoCoreError as e:
            logger.exception("Unexpected error during stat", extra={"error": str(e), "key": key})
            raise StorageError(
                f"Failed to stat {key}: {e}",
                code="STORAGE_METADATA_ERROR",
                metadata={"key": key, "bucket": self.bucket},
            ) from e

        return ObjectStat(
            key=key,
            size=response.get("ContentLength", 0),
            content_type=response.get("ContentType"),
            last_modified=response.get("LastModified"),
            etag=response.get("ETag", "").strip('"') or None,
            metadata=response.get("Metadata", {}),
        )

    async def open_object(self, key: str) -> ObjectStream:
        """Acquire the object body as a chunked stream.

        The returned stream must be iterated or closed by the caller; the
        HTTP connection is held until then.

        Raises:
            StorageFileNotFoundError: If the object does not exist
            StorageDownloadError: If the body cannot be opened
        """
        client = self._ensure_client()

        try:
            async with track_storage_operation("open", key=key, bucket=self.bucket) as ctx:
                response = await client.get_object(Bucket=self.bucket, Key=key)
                ctx["result_size"] = response.get("ContentLength", 0)
        except ClientError as e:
            logger.exception("Failed to open object", extra={"error": str(e), "key": key})
            raise map_boto_error(e, operation="download", key=key) from e
        except BotoCoreError as e:
            logger.exception("Unexpected error opening object", extra={"error": str(e), "key": key})
            raise StorageDownloadError(
                f"Failed to open {key}: {e}",
                metadata={"key": key, "bucket": self.bucket},
            ) from e

        body = response["Body"]
        return ObjectStream(
            key,
            self._iter_body(key, body),
            on_close=body.close,
            size=response.get("ContentLength"),
            content_type=response.get("ContentType"),
        )

    async def _iter_body(self, key: str, body: Any) -> AsyncIterator[bytes]:
        try:
            async for chunk in body.iter_chunks(self.settings.streaming_chunk_size):
                yield chunk
        except (ClientError, BotoCoreError, OSError) as e:
            logger.exception("Object body read failed", extra={"error": str(e), "key": key})
            raise StorageDownloadError(
                f"Failed to read {key}: {e}",
                metadata={"key": key, "bucket": self.bucket},
            ) from e

    async def remove_object(self, key: str) -> None:
        """Delete ``key``. S3 treats deleting a missing key as success."""
        client = self._ensure_client()

        try:
            async with track_storage_operation("delete", key=key, bucket=self.bucket):
                await client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            logger.exception("Failed to delete object", extra={"error": str(e), "key": key})
            raise map_boto_error(e, operation="delete", key=key) from e
        except BotoCoreError as e:
            logger.exception("Unexpected error during delete", extra={"error": str(e), "key": key})
            raise StorageError(
                f"Failed to delete {key}: {e}",
                code="STORAGE_DELETE_ERROR",
                metadata={"key": key, "bucket": self.bucket},
            ) from e

        logger.info("Object deleted", extra={"key": key, "bucket": self.bucket})

    # ========================================================================
    # Context Manager Support
    # ========================================================================

    async def __aenter__(self) -> S3ObjectStore:
        await self.startup()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.shutdown()
