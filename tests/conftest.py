"""Pytest configuration and shared fixtures.

Organization:
    - Environment: storage settings so nothing reaches for a real endpoint
    - Object store double: ``InMemoryObjectStore``, an ``ObjectStore`` kept in a dict
    - Application fixtures: FastAPI app wired to the double and an HTTP client
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, AsyncIterator
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure tests run without external infrastructure
os.environ.setdefault("STORAGE_ENDPOINT", "localhost")
os.environ.setdefault("STORAGE_PORT", "9000")
os.environ.setdefault("STORAGE_ACCESS_KEY", "test-access-key")
os.environ.setdefault("STORAGE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_BUCKET", "test-gallery")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")
os.environ.setdefault("APP_ENVIRONMENT", "test")

from gallery_service.app.main import create_app  # noqa: E402
from gallery_service.core.settings import (  # noqa: E402
    AppSettings,
    LoggingSettings,
    clear_settings_cache,
)
from gallery_service.infra.storage.exceptions import (  # noqa: E402
    StorageError,
    StorageFileNotFoundError,
)
from gallery_service.infra.storage.protocol import ObjectStat, ObjectStream  # noqa: E402


# ============================================================================
# Object Store Double
# ============================================================================


class InMemoryObjectStore:
    """ObjectStore kept in a dict, with hooks to inject failures.

    Attributes:
        objects: key -> (data, content_type)
        failures: operation name -> exception raised by that operation
        list_fail_after: raise StorageError after yielding this many objects
        streams: every ObjectStream handed out, for close assertions
        calls: operation names in call order
    """

    def __init__(self, bucket: str = "test-gallery", bucket_exists: bool = True) -> None:
        self._bucket = bucket
        self._bucket_exists = bucket_exists
        self._ready = False
        self.objects: dict[str, tuple[bytes, str | None]] = {}
        self.failures: dict[str, Exception] = {}
        self.list_fail_after: int | None = None
        self.streams: list[ObjectStream] = []
        self.calls: list[str] = []
        self.chunk_size = 4

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]

    async def startup(self) -> None:
        self._record("startup")
        self._ready = True

    async def shutdown(self) -> None:
        self.calls.append("shutdown")
        self._ready = False

    async def health_check(self) -> bool:
        self.calls.append("health_check")
        return "health_check" not in self.failures and self._bucket_exists

    async def bucket_exists(self) -> bool:
        self._record("bucket_exists")
        return self._bucket_exists

    async def create_bucket(self) -> None:
        self._record("create_bucket")
        self._bucket_exists = True

    async def list_objects(
        self,
        prefix: str = "",
        recursive: bool = True,
    ) -> AsyncIterator[ObjectStat]:
        self._record("list")
        for index, (key, (data, _)) in enumerate(sorted(self.objects.items())):
            if self.list_fail_after is not None and index >= self.list_fail_after:
                raise StorageError("List failed: connection reset", code="STORAGE_ERROR")
            if key.startswith(prefix):
                yield ObjectStat(key=key, size=len(data), last_modified=datetime.now(UTC))

    async def put_object(
        self,
        key: str,
        data: bytes,
        length: int,
        content_type: str | None = None,
    ) -> ObjectStat:
        self._record("put")
        assert length == len(data)
        self.objects[key] = (data, content_type)
        return ObjectStat(key=key, size=length, content_type=content_type)

    async def stat_object(self, key: str) -> ObjectStat:
        self._record("stat")
        if key not in self.objects:
            raise StorageFileNotFoundError(f"Stat failed: {key} not found", metadata={"key": key})
        data, content_type = self.objects[key]
        return ObjectStat(key=key, size=len(data), content_type=content_type)

    async def open_object(self, key: str) -> ObjectStream:
        self._record("open")
        if key not in self.objects:
            raise StorageFileNotFoundError(f"Download failed: {key} not found")
        data, content_type = self.objects[key]
        stream = ObjectStream(
            key,
            self._chunks(data),
            size=len(data),
            content_type=content_type,
        )
        self.streams.append(stream)
        return stream

    async def _chunks(self, data: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(data), self.chunk_size):
            if "read" in self.failures:
                raise self.failures["read"]
            yield data[start : start + self.chunk_size]

    async def remove_object(self, key: str) -> None:
        self._record("remove")
        self.objects.pop(key, None)


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Reload settings from the environment for every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def store() -> InMemoryObjectStore:
    """Empty in-memory object store for the test bucket."""
    return InMemoryObjectStore()


@pytest.fixture
def store_factory() -> type[InMemoryObjectStore]:
    """The in-memory store class, for tests that need a custom instance."""
    return InMemoryObjectStore


@pytest.fixture
def app_settings() -> AppSettings:
    """Application settings with a 1 MB upload limit."""
    return AppSettings(max_upload_size_mb=1, environment="test")


@pytest.fixture
def log_settings() -> LoggingSettings:
    return LoggingSettings(console_enabled=False, json_logs=False)


@pytest.fixture
def app(store: InMemoryObjectStore, app_settings: AppSettings, log_settings: LoggingSettings):
    """Gallery application wired to the in-memory store."""
    return create_app(app_settings=app_settings, log_settings=log_settings, store=store)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """HTTP client over ASGI; the lifespan does not run."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
