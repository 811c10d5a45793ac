"""Schemas for the gallery pages."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ListingEntry(BaseModel):
    """One row of the index page."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Object key")
    size: int = Field(gt=0, description="Object size in bytes")
