"""S3-compatible object storage configuration settings.

Environment variables use STORAGE_ prefix. The MINIO_* names used by
existing MinIO deployments are accepted as aliases.
Example: STORAGE_ENDPOINT="localhost"
         STORAGE_PORT=9000
         STORAGE_BUCKET="gallery"

Supports:
- MinIO (host + port, TLS usually off)
- AWS S3 (host "s3.amazonaws.com", TLS on)
- LocalStack or any other S3-compatible service
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Settings for the single bucket the gallery serves.

    Endpoint, credentials and bucket are required: a process started
    without them fails validation before serving any traffic.
    """

    # ──────────────────────────────────────────────────────────────
    # Connection
    # ──────────────────────────────────────────────────────────────

    endpoint: str = Field(
        validation_alias=AliasChoices("STORAGE_ENDPOINT", "MINIO_ENDPOINT"),
        min_length=1,
        description="Object store host name (no scheme), e.g. 'localhost' or 'minio.internal'",
    )

    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("STORAGE_PORT", "MINIO_PORT"),
        description="Object store port. None uses the scheme default (80/443).",
    )

    use_ssl: bool = Field(
        default=False,
        validation_alias=AliasChoices("STORAGE_USE_SSL", "MINIO_USE_SSL"),
        description="Use TLS for object store connections",
    )

    access_key: SecretStr = Field(
        validation_alias=AliasChoices("STORAGE_ACCESS_KEY", "MINIO_ACCESS_KEY"),
        description="Access key ID",
    )

    secret_key: SecretStr = Field(
        validation_alias=AliasChoices("STORAGE_SECRET_KEY", "MINIO_SECRET_KEY"),
        description="Secret access key",
    )

    bucket: str = Field(
        validation_alias=AliasChoices("STORAGE_BUCKET", "MINIO_BUCKET_NAME"),
        min_length=3,
        max_length=63,
        description="The one bucket this service browses, created on startup if absent",
    )

    region: str = Field(
        default="us-east-1",
        description="Region used for request signing and bucket creation",
    )

    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates (set False for self-signed certs in local MinIO)",
    )

    # ──────────────────────────────────────────────────────────────
    # Client behaviour
    # ──────────────────────────────────────────────────────────────

    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Connect and read timeout in seconds",
    )

    max_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Extra attempts botocore makes on failure (0 surfaces errors immediately)",
    )

    max_pool_connections: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Maximum number of connections in the connection pool",
    )

    streaming_chunk_size: int = Field(
        default=64 * 1024,
        ge=1024,
        le=16 * 1024 * 1024,
        description="Chunk size in bytes for streaming downloads and previews",
    )

    # ──────────────────────────────────────────────────────────────
    # Validators
    # ──────────────────────────────────────────────────────────────

    @field_validator("endpoint", mode="after")
    @classmethod
    def _strip_scheme(cls, value: str) -> str:
        """Accept endpoints given with a scheme or trailing slash."""
        for scheme in ("http://", "https://"):
            if value.startswith(scheme):
                value = value[len(scheme):]
        return value.rstrip("/")

    # ──────────────────────────────────────────────────────────────
    # Computed Properties
    # ──────────────────────────────────────────────────────────────

    @computed_field  # type: ignore[prop-decorator]
    @property
    def endpoint_url(self) -> str:
        """Full endpoint URL built from host, port and TLS flag."""
        scheme = "https" if self.use_ssl else "http"
        if self.port is None:
            return f"{scheme}://{self.endpoint}"
        return f"{scheme}://{self.endpoint}:{self.port}"

    def get_boto3_config(self) -> dict[str, Any]:
        """Get keyword arguments for an aioboto3 S3 client.

        Returns:
            Dictionary with endpoint, credentials, region and TLS settings.
        """
        return {
            "endpoint_url": self.endpoint_url,
            "region_name": self.region,
            "use_ssl": self.use_ssl,
            "verify": self.verify_ssl,
            "aws_access_key_id": self.access_key.get_secret_value(),
            "aws_secret_access_key": self.secret_key.get_secret_value(),
        }

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )
