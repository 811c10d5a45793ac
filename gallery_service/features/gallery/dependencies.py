"""Dependencies for gallery endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from gallery_service.infra.storage.exceptions import StorageNotConfiguredError
from gallery_service.infra.storage.protocol import ObjectStore

from .service import GalleryService


def get_object_store(request: Request) -> ObjectStore:
    """Return the store created at application startup."""
    store: ObjectStore | None = getattr(request.app.state, "object_store", None)
    if store is None:
        raise StorageNotConfiguredError("Object store is not available")
    return store


def get_gallery_service(
    request: Request,
    store: Annotated[ObjectStore, Depends(get_object_store)],
) -> GalleryService:
    return GalleryService(
        store,
        max_upload_size_bytes=getattr(request.app.state, "max_upload_size_bytes", None),
        clock=getattr(request.app.state, "key_clock", None),
    )


GalleryServiceDep = Annotated[GalleryService, Depends(get_gallery_service)]

__all__ = ["GalleryServiceDep", "get_gallery_service", "get_object_store"]
