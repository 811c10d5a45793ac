"""Application lifespan management.

Startup order:
1. Logging
2. Object store client (created from settings unless one was injected)
3. Bucket bootstrap: reuse the bucket or create it

Any startup failure is fatal: it is logged at CRITICAL and re-raised, so
Uvicorn aborts before the socket is bound and nothing is served.

Shutdown closes the object store client.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from gallery_service.core.settings import get_logging_settings, get_storage_settings
from gallery_service.infra.logging.config import setup_logging
from gallery_service.infra.storage import create_object_store, ensure_bucket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from gallery_service.infra.storage.protocol import ObjectStore

logger = logging.getLogger(__name__)


async def _startup_storage(app: FastAPI) -> ObjectStore:
    store: ObjectStore | None = getattr(app.state, "object_store", None)
    if store is None:
        storage_settings = getattr(app.state, "storage_settings", None) or get_storage_settings()
        store = create_object_store(storage_settings)

    await store.startup()
    app.state.object_store = store

    created = await ensure_bucket(store)
    logger.info(
        "Object store ready",
        extra={"bucket": store.bucket, "bucket_created": created},
    )
    return store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Bootstrap the bucket before serving and close the store afterwards."""
    log_settings = getattr(app.state, "log_settings", None) or get_logging_settings()
    setup_logging(log_settings, service_name=app.state.service_name)

    logger.info(
        "Application starting",
        extra={"service": app.state.service_name, "version": app.version},
    )

    store: ObjectStore | None = None
    try:
        store = await _startup_storage(app)
    except Exception:
        logger.critical("Bucket bootstrap failed, aborting startup", exc_info=True)
        if store is None:
            store = getattr(app.state, "object_store", None)
        if store is not None and store.is_ready:
            await store.shutdown()
        raise

    try:
        yield
    finally:
        logger.info("Application shutting down")
        await store.shutdown()
