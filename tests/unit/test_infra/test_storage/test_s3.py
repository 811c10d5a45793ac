"""Unit tests for S3ObjectStore against a mocked aioboto3 client."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

from botocore.exceptions import ClientError, EndpointConnectionError
import pytest

from gallery_service.core.settings.storage import StorageSettings
from gallery_service.infra.storage.exceptions import (
    StorageDownloadError,
    StorageError,
    StorageFileNotFoundError,
    StorageNotConfiguredError,
    StoragePermissionError,
)
from gallery_service.infra.storage.s3 import S3ObjectStore


def _client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeBody:
    """Stand-in for the aiobotocore StreamingBody."""

    def __init__(self, chunks: list[bytes], fail_after: int | None = None) -> None:
        self.chunks = chunks
        self.fail_after = fail_after
        self.close = MagicMock()
        self.requested_chunk_size: int | None = None

    async def iter_chunks(self, chunk_size: int):
        self.requested_chunk_size = chunk_size
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise OSError("connection reset by peer")
            yield chunk


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(
        endpoint="localhost",
        port=9000,
        access_key="test-access-key",
        secret_key="test-secret-key",
        bucket="test-gallery",
        streaming_chunk_size=1024,
    )


@pytest.fixture
def s3_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def s3_store(storage_settings, s3_client) -> S3ObjectStore:
    store = S3ObjectStore(storage_settings, session=MagicMock())
    store._client = s3_client
    return store


class TestLifecycle:
    """Test startup, shutdown and readiness."""

    @pytest.mark.asyncio
    async def test_startup_opens_client_with_settings(self, storage_settings):
        client = AsyncMock()
        client_context = MagicMock()
        client_context.__aenter__ = AsyncMock(return_value=client)
        client_context.__aexit__ = AsyncMock(return_value=None)
        session = MagicMock()
        session.client.return_value = client_context

        store = S3ObjectStore(storage_settings, session=session)
        await store.startup()

        assert store.is_ready
        args, kwargs = session.client.call_args
        assert args == ("s3",)
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["aws_access_key_id"] == "test-access-key"
        assert kwargs["config"].s3 == {"addressing_style": "path"}

        await store.shutdown()

        assert not store.is_ready
        client_context.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_startup_failure_is_storage_error(self, storage_settings):
        session = MagicMock()
        session.client.side_effect = ValueError("bad endpoint")

        store = S3ObjectStore(storage_settings, session=session)

        with pytest.raises(StorageError) as exc_info:
            await store.startup()

        assert exc_info.value.code == "STORAGE_INITIALIZATION_ERROR"
        assert exc_info.value.status_code == 503
        assert not store.is_ready

    @pytest.mark.asyncio
    async def test_operations_before_startup_fail(self, storage_settings):
        store = S3ObjectStore(storage_settings, session=MagicMock())

        with pytest.raises(StorageNotConfiguredError):
            await store.stat_object("key")

    @pytest.mark.asyncio
    async def test_shutdown_without_startup_is_noop(self, storage_settings):
        store = S3ObjectStore(storage_settings, session=MagicMock())
        await store.shutdown()
        assert not store.is_ready


class TestBucketOperations:
    """Test bucket existence checks and creation."""

    @pytest.mark.asyncio
    async def test_bucket_exists(self, s3_store, s3_client):
        assert await s3_store.bucket_exists() is True
        s3_client.head_bucket.assert_awaited_once_with(Bucket="test-gallery")

    @pytest.mark.asyncio
    async def test_bucket_missing(self, s3_store, s3_client):
        s3_client.head_bucket.side_effect = _client_error("404", "HeadBucket")
        assert await s3_store.bucket_exists() is False

    @pytest.mark.asyncio
    async def test_bucket_check_permission_denied_raises(self, s3_store, s3_client):
        s3_client.head_bucket.side_effect = _client_error("403", "HeadBucket")

        with pytest.raises(StoragePermissionError):
            await s3_store.bucket_exists()

    @pytest.mark.asyncio
    async def test_bucket_check_unreachable_raises(self, s3_store, s3_client):
        s3_client.head_bucket.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:9000",
        )

        with pytest.raises(StorageError) as exc_info:
            await s3_store.bucket_exists()

        assert exc_info.value.code == "STORAGE_CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_create_bucket_default_region(self, s3_store, s3_client):
        await s3_store.create_bucket()
        s3_client.create_bucket.assert_awaited_once_with(Bucket="test-gallery")

    @pytest.mark.asyncio
    async def test_create_bucket_other_region(self, storage_settings, s3_client):
        settings = storage_settings.model_copy(update={"region": "eu-west-1"})
        store = S3ObjectStore(settings, session=MagicMock())
        store._client = s3_client

        await store.create_bucket()

        s3_client.create_bucket.assert_awaited_once_with(
            Bucket="test-gallery",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )

    @pytest.mark.asyncio
    async def test_create_bucket_already_owned(self, s3_store, s3_client):
        s3_client.create_bucket.side_effect = _client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        await s3_store.create_bucket()

    @pytest.mark.asyncio
    async def test_create_bucket_failure(self, s3_store, s3_client):
        s3_client.create_bucket.side_effect = _client_error("AccessDenied", "CreateBucket", "denied")

        with pytest.raises(StoragePermissionError):
            await s3_store.create_bucket()

    @pytest.mark.asyncio
    async def test_health_check(self, s3_store, s3_client):
        assert await s3_store.health_check() is True

        s3_client.head_bucket.side_effect = _client_error("403", "HeadBucket")
        assert await s3_store.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_unexpected_error(self, s3_store, s3_client):
        s3_client.head_bucket.side_effect = OSError("connection reset by peer")
        assert await s3_store.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_before_startup(self, storage_settings):
        store = S3ObjectStore(storage_settings, session=MagicMock())
        assert await store.health_check() is False


class TestListObjects:
    """Test paginated listing."""

    @pytest.mark.asyncio
    async def test_follows_continuation_tokens(self, s3_store, s3_client):
        modified = datetime(2024, 1, 1, tzinfo=UTC)
        s3_client.list_objects_v2.side_effect = [
            {
                "Contents": [{"Key": "a.txt", "Size": 1, "LastModified": modified, "ETag": '"e1"'}],
                "IsTruncated": True,
                "NextContinuationToken": "page-2",
            },
            {
                "Contents": [{"Key": "b.txt", "Size": 2, "LastModified": modified}],
                "IsTruncated": False,
            },
        ]

        objects = [obj async for obj in s3_store.list_objects()]

        assert [(o.key, o.size) for o in objects] == [("a.txt", 1), ("b.txt", 2)]
        assert objects[0].etag == "e1"
        assert objects[1].etag is None
        first_call, second_call = s3_client.list_objects_v2.await_args_list
        assert first_call.kwargs == {"Bucket": "test-gallery", "Prefix": ""}
        assert second_call.kwargs["ContinuationToken"] == "page-2"

    @pytest.mark.asyncio
    async def test_empty_bucket(self, s3_store, s3_client):
        s3_client.list_objects_v2.return_value = {"IsTruncated": False}
        assert [obj async for obj in s3_store.list_objects()] == []

    @pytest.mark.asyncio
    async def test_non_recursive_uses_delimiter(self, s3_store, s3_client):
        s3_client.list_objects_v2.return_value = {"IsTruncated": False}

        _ = [obj async for obj in s3_store.list_objects(prefix="photos/", recursive=False)]

        assert s3_client.list_objects_v2.await_args.kwargs["Delimiter"] == "/"

    @pytest.mark.asyncio
    async def test_failure_on_later_page(self, s3_store, s3_client):
        s3_client.list_objects_v2.side_effect = [
            {
                "Contents": [{"Key": "a.txt", "Size": 1}],
                "IsTruncated": True,
                "NextContinuationToken": "page-2",
            },
            _client_error("InternalError", "ListObjectsV2", "try again"),
        ]

        seen = []
        with pytest.raises(StorageError) as exc_info:
            async for obj in s3_store.list_objects():
                seen.append(obj.key)

        assert seen == ["a.txt"]
        assert exc_info.value.message == "List failed: try again"


class TestObjectOperations:
    """Test put, stat, open and remove."""

    @pytest.mark.asyncio
    async def test_put_object(self, s3_store, s3_client):
        s3_client.put_object.return_value = {"ETag": '"abc"'}

        stat = await s3_store.put_object("1-cat.png", b"meow", 4, "image/png")

        s3_client.put_object.assert_awaited_once_with(
            Bucket="test-gallery",
            Key="1-cat.png",
            Body=b"meow",
            ContentLength=4,
            ContentType="image/png",
        )
        assert stat.etag == "abc"
        assert stat.size == 4

    @pytest.mark.asyncio
    async def test_put_object_default_content_type(self, s3_store, s3_client):
        s3_client.put_object.return_value = {}

        await s3_store.put_object("1-blob", b"x", 1)

        assert s3_client.put_object.await_args.kwargs["ContentType"] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_stat_object(self, s3_store, s3_client):
        s3_client.head_object.return_value = {
            "ContentLength": 4,
            "ContentType": "image/png",
            "ETag": '"abc"',
        }

        stat = await s3_store.stat_object("1-cat.png")

        assert stat.size == 4
        assert stat.content_type == "image/png"
        assert stat.metadata == {}

    @pytest.mark.asyncio
    async def test_stat_missing_object(self, s3_store, s3_client):
        s3_client.head_object.side_effect = _client_error("404", "HeadObject", "Not Found")

        with pytest.raises(StorageFileNotFoundError) as exc_info:
            await s3_store.stat_object("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.extra["key"] == "missing"

    @pytest.mark.asyncio
    async def test_open_object_streams_and_closes(self, s3_store, s3_client):
        body = FakeBody([b"ab", b"", b"cd"])
        s3_client.get_object.return_value = {
            "Body": body,
            "ContentLength": 4,
            "ContentType": "text/plain",
        }

        stream = await s3_store.open_object("1-notes.txt")
        data = b"".join([chunk async for chunk in stream.iter_bytes()])

        assert data == b"abcd"
        assert stream.size == 4
        assert stream.content_type == "text/plain"
        assert body.requested_chunk_size == 1024
        body.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_open_object_read_failure_closes_body(self, s3_store, s3_client):
        body = FakeBody([b"ab", b"cd"], fail_after=1)
        s3_client.get_object.return_value = {"Body": body, "ContentLength": 4}

        stream = await s3_store.open_object("1-notes.txt")

        with pytest.raises(StorageDownloadError):
            async for _ in stream.iter_bytes():
                pass

        assert stream.closed
        body.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_open_missing_object(self, s3_store, s3_client):
        s3_client.get_object.side_effect = _client_error("NoSuchKey", "GetObject", "gone")

        with pytest.raises(StorageFileNotFoundError):
            await s3_store.open_object("missing")

    @pytest.mark.asyncio
    async def test_remove_object(self, s3_store, s3_client):
        await s3_store.remove_object("1-cat.png")
        s3_client.delete_object.assert_awaited_once_with(Bucket="test-gallery", Key="1-cat.png")

    @pytest.mark.asyncio
    async def test_remove_object_failure(self, s3_store, s3_client):
        s3_client.delete_object.side_effect = _client_error("AccessDenied", "DeleteObject", "denied")

        with pytest.raises(StoragePermissionError) as exc_info:
            await s3_store.remove_object("1-cat.png")

        assert exc_info.value.message == "Delete failed: denied"
