"""Gallery operations over the configured bucket.

The service owns the rules of the gallery (key naming, listing filter,
image check, size guard) and leaves HTTP concerns to the router. Storage
failures propagate as ``StorageError`` subclasses.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from gallery_service.core.exceptions import PayloadTooLargeException
from gallery_service.infra.storage.exceptions import StorageFileNotFoundError
from gallery_service.infra.storage.s3 import DEFAULT_CONTENT_TYPE

from .exceptions import NotAnImageError
from .schemas import ListingEntry

if TYPE_CHECKING:
    from collections.abc import Callable

    from gallery_service.infra.storage.protocol import ObjectStat, ObjectStore, ObjectStream

logger = logging.getLogger(__name__)


class KeyClock:
    """Unix-millisecond timestamps for object keys, strictly increasing.

    One clock is created per application and shared by every request, so
    two uploads landing in the same millisecond still get distinct keys.
    """

    def __init__(self, time_ns: Callable[[], int] = time.time_ns) -> None:
        self._time_ns = time_ns
        self._last_ms = 0

    def next_ms(self) -> int:
        now_ms = self._time_ns() // 1_000_000
        if now_ms <= self._last_ms:
            now_ms = self._last_ms + 1
        self._last_ms = now_ms
        return now_ms


def build_object_key(filename: str, now_ms: int) -> str:
    """Build the storage key for an upload: ``<unix-millis>-<filename>``."""
    return f"{now_ms}-{filename}"


def is_image(content_type: str | None) -> bool:
    return bool(content_type) and content_type.startswith("image/")


class GalleryService:
    """List, upload, delete, download and preview objects in one bucket.

    Example:
        service = GalleryService(store, max_upload_size_bytes=100 * 1024 * 1024)
        entries = await service.list_entries()
        stat = await service.upload("cat.png", data, "image/png")
    """

    def __init__(
        self,
        store: ObjectStore,
        max_upload_size_bytes: int | None = None,
        clock: KeyClock | None = None,
    ) -> None:
        self.store = store
        self.max_upload_size_bytes = max_upload_size_bytes
        self.clock = clock or KeyClock()

    @property
    def bucket(self) -> str:
        return self.store.bucket

    async def list_entries(self) -> list[ListingEntry]:
        """Collect every object in the bucket as an index row.

        Objects with an empty name or a zero size are skipped, so empty
        files never show up in the gallery.
        """
        entries: list[ListingEntry] = []
        async for obj in self.store.list_objects(prefix="", recursive=True):
            if obj.key and obj.size:
                entries.append(ListingEntry(name=obj.key, size=obj.size))
        return entries

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> ObjectStat:
        """Store ``data`` under a fresh time-prefixed key.

        Raises:
            PayloadTooLargeException: If ``data`` exceeds the configured limit.
            StorageError: If the write fails.
        """
        size = len(data)
        if self.max_upload_size_bytes is not None and size > self.max_upload_size_bytes:
            raise PayloadTooLargeException(
                detail=(
                    f"Upload of {size} bytes exceeds the "
                    f"{self.max_upload_size_bytes} byte limit."
                ),
                extra={"size_bytes": size, "max_bytes": self.max_upload_size_bytes},
            )

        key = build_object_key(filename, self.clock.next_ms())
        stat = await self.store.put_object(
            key,
            data,
            size,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )
        logger.info("Gallery upload stored", extra={"key": key, "size_bytes": size})
        return stat

    async def delete(self, key: str) -> None:
        await self.store.remove_object(key)
        logger.info("Gallery object deleted", extra={"key": key})

    async def open_download(self, key: str) -> ObjectStream:
        """Stat ``key`` for its content type, then open its body."""
        stat = await self.store.stat_object(key)
        stream = await self.store.open_object(key)
        stream.content_type = stat.content_type or stream.content_type or DEFAULT_CONTENT_TYPE
        return stream

    async def open_preview(self, key: str) -> ObjectStream:
        """Open ``key`` for inline display.

        Raises:
            StorageError: If the object cannot be stat'ed or opened.
                A stat that reports no content type counts as missing.
            NotAnImageError: If the stored content type is not ``image/*``.
        """
        stat = await self.store.stat_object(key)
        if not stat.content_type:
            raise StorageFileNotFoundError(
                f"Preview failed: {key} has no content type",
                metadata={"key": key},
            )
        if not is_image(stat.content_type):
            raise NotAnImageError(key, stat.content_type)
        stream = await self.store.open_object(key)
        stream.content_type = stat.content_type
        return stream
