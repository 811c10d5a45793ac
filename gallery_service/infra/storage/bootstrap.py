"""Startup bucket provisioning."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .protocol import ObjectStore

logger = logging.getLogger(__name__)


async def ensure_bucket(store: ObjectStore) -> bool:
    """Make sure the store's bucket exists, creating it when absent.

    Args:
        store: An object store that has completed startup().

    Returns:
        True if the bucket was created, False if it already existed.

    Raises:
        StorageError: If the existence check or the creation fails. Callers
            running this at startup must treat that as fatal.
    """
    if await store.bucket_exists():
        logger.info(f"Bucket '{store.bucket}' already exists")
        return False

    await store.create_bucket()
    logger.info(f"Bucket '{store.bucket}' created")
    return True
