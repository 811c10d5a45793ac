"""Object store protocol and normalized data structures.

This module defines:
- ``ObjectStat``: metadata returned by listing and stat calls
- ``ObjectStream``: a closeable, chunked view over an object body
- ``ObjectStore``: the protocol the gallery consumes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from datetime import datetime


@dataclass(frozen=True)
class ObjectStat:
    """Normalized object metadata.

    Attributes:
        key: Object key
        size: Object size in bytes
        content_type: MIME type (None in listings, which do not return it)
        last_modified: Last modification timestamp
        etag: Entity tag
        metadata: User metadata stored with the object
    """

    key: str
    size: int
    content_type: str | None = None
    last_modified: datetime | None = None
    etag: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


class ObjectStream:
    """Closeable chunked view over an object body.

    The body is acquired when the stream is created and released exactly
    once: when iteration finishes, when iteration fails, when the consumer
    abandons the iterator, or when ``close()`` is called directly.

    Example:
        stream = await store.open_object("1700000000000-cat.png")
        async with stream:
            async for chunk in stream.iter_bytes():
                sink.write(chunk)
    """

    def __init__(
        self,
        key: str,
        chunks: AsyncIterator[bytes],
        on_close: Callable[[], object] | None = None,
        *,
        size: int | None = None,
        content_type: str | None = None,
    ) -> None:
        self.key = key
        self.size = size
        self.content_type = content_type
        self._chunks = chunks
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the body in order, closing the stream on every exit path."""
        try:
            async for chunk in self._chunks:
                if chunk:
                    yield chunk
        finally:
            self.close()

    def close(self) -> None:
        """Release the underlying body. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()

    async def __aenter__(self) -> ObjectStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class ObjectStore(Protocol):
    """Protocol for the single-bucket object store the gallery runs against.

    Every operation targets the bucket the store was constructed with.
    Uses structural typing so tests can supply an in-memory double.
    """

    @property
    def bucket(self) -> str:
        """Name of the bucket every operation targets."""
        ...

    @property
    def is_ready(self) -> bool:
        """Whether startup() has completed."""
        ...

    async def startup(self) -> None:
        """Open connections."""
        ...

    async def shutdown(self) -> None:
        """Close connections."""
        ...

    async def health_check(self) -> bool:
        """Check connectivity and credentials against the bucket."""
        ...

    async def bucket_exists(self) -> bool:
        """Check whether the bucket exists."""
        ...

    async def create_bucket(self) -> None:
        """Create the bucket."""
        ...

    def list_objects(
        self,
        prefix: str = "",
        recursive: bool = True,
    ) -> AsyncIterator[ObjectStat]:
        """Lazily list every object under ``prefix``, following pagination."""
        ...

    async def put_object(
        self,
        key: str,
        data: bytes,
        length: int,
        content_type: str | None = None,
    ) -> ObjectStat:
        """Write ``data`` under ``key``."""
        ...

    async def stat_object(self, key: str) -> ObjectStat:
        """Read object metadata. Raises StorageFileNotFoundError when absent."""
        ...

    async def open_object(self, key: str) -> ObjectStream:
        """Acquire the object body as a stream."""
        ...

    async def remove_object(self, key: str) -> None:
        """Delete ``key``. Deleting a missing key is not an error."""
        ...
