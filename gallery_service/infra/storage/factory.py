"""Object store factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .s3 import S3ObjectStore

if TYPE_CHECKING:
    from gallery_service.core.settings.storage import StorageSettings

    from .protocol import ObjectStore


def create_object_store(settings: StorageSettings | None = None) -> ObjectStore:
    """Create the object store for the configured endpoint and bucket.

    Args:
        settings: Storage settings. Loaded from the environment when omitted.

    Returns:
        An un-started store; call ``startup()`` before use.
    """
    if settings is None:
        from gallery_service.core.settings import get_storage_settings

        settings = get_storage_settings()

    return S3ObjectStore(settings)
