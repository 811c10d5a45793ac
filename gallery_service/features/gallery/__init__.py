"""Gallery feature: browse, upload, download, preview and delete objects."""

from __future__ import annotations

from .router import router
from .service import GalleryService

__all__ = ["GalleryService", "router"]
