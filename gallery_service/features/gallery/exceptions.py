"""Gallery-specific exceptions."""

from __future__ import annotations

from gallery_service.core.exceptions import BadRequestException


class NotAnImageError(BadRequestException):
    """Raised when a preview is requested for an object that is not an image."""

    def __init__(self, key: str, content_type: str | None) -> None:
        super().__init__(
            detail="File is not an image.",
            type="not-an-image",
            extra={"key": key, "content_type": content_type},
        )
