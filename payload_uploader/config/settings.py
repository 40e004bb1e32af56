"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
The defaults reproduce the original function's hard-coded values (region,
prefixes, success message, placeholder key), so an empty environment
behaves exactly like the deployed Lambda.

Mock mode enables local development without AWS credentials.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    (case-insensitive, e.g. BUCKET_REGION, BUCKET_PREFIX).
    """

    # API Configuration
    api_title: str = "Payload Uploader"
    api_version: str = "v1"

    # AWS / S3
    bucket_region: str = Field(
        default="ap-south-1",
        description="Region for the S3 client and the bucket location constraint."
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override the S3 endpoint (MinIO, LocalStack). Unset for real S3."
    )
    s3_access_key_id: Optional[str] = Field(
        default=None,
        description="Explicit access key. Unset to use the ambient credential chain."
    )
    s3_secret_access_key: Optional[str] = Field(
        default=None,
        description="Explicit secret key. Unset to use the ambient credential chain."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory storage instead of S3. Enables local dev without AWS."
    )

    # Naming
    bucket_prefix: str = Field(
        default="filename",
        description="Prefix for the per-request bucket name."
    )
    object_prefix: str = Field(
        default="upload-",
        description="Prefix for the object key."
    )
    compressed_suffix: str = Field(
        default=".zst",
        description="Suffix appended to the object key in the compressed variant."
    )
    timestamp_format: str = Field(
        default="%Y%m%d-%H%M%S",
        description="strftime format for the timestamp in bucket and object names."
    )
    unique_names: bool = Field(
        default=False,
        description="Append a random suffix to names. Off means same-second requests collide."
    )

    # Transform
    compress_payload: bool = Field(
        default=True,
        description="Variant used by lambda_handler and POST /api/v1/uploads."
    )
    compression_level: int = Field(
        default=3,
        description="Zstandard compression level."
    )
    transform_key: str = Field(
        default="your-encryption-key",
        description="Placeholder key prepended to compressed payloads. Not a secret: no encryption is applied."
    )

    # Pipeline behaviour
    cleanup_on_failure: bool = Field(
        default=False,
        description="Delete the bucket if a later step fails. Off leaves it behind."
    )
    success_message: str = Field(
        default="File successfully uploaded to S3.",
        description="Body returned on a successful upload."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def transform_key_bytes(self) -> bytes:
        return self.transform_key.encode("utf-8")

    def validate_required_fields(self) -> list[str]:
        """
        Validate settings whose requirements depend on other settings.

        Returns list of problems; empty means the configuration is usable.
        """
        missing = []

        if not self.bucket_prefix:
            missing.append("BUCKET_PREFIX")
        if not self.object_prefix:
            missing.append("OBJECT_PREFIX")

        # Region only matters when talking to a real backend
        if not self.storage_mock_mode and not self.bucket_region:
            missing.append("BUCKET_REGION")

        # One explicit credential without the other is a misconfiguration
        if bool(self.s3_access_key_id) != bool(self.s3_secret_access_key):
            missing.append("S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY must be set together")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process (once
    per warm Lambda container). For tests, call get_settings.cache_clear().
    """
    return Settings()
