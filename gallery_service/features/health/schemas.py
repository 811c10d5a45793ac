"""Health check response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

HealthStatus = Literal["healthy", "unhealthy"]


class HealthResponse(BaseModel):
    """Health check response.

    Example:
        ```json
        {
            "status": "healthy",
            "timestamp": "2025-01-01T00:00:00Z",
            "service": "gallery-service",
            "version": "1.0.0",
            "checks": {"storage": true}
        }
        ```
    """

    status: HealthStatus = Field(description="Health status (healthy, unhealthy)")
    timestamp: datetime = Field(description="Check timestamp")
    service: str = Field(min_length=1, max_length=100, description="Service name")
    version: str = Field(min_length=1, max_length=50, description="Service version")
    checks: dict[str, bool] = Field(
        default_factory=dict, description="Individual dependency health checks"
    )

    model_config = ConfigDict(str_strip_whitespace=True)


class LivenessResponse(BaseModel):
    """Liveness check response."""

    status: Literal["alive"] = "alive"
    timestamp: datetime
    service: str
