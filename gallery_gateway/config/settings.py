"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The object store binding (ALBUM_BUCKET) is optional on purpose: without it
the gateway still answers status checks and reports a configuration error
for storage operations instead of refusing to start.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CORS_ORIGINS = ",".join([
    "https://ebluvu.github.io",
    "http://127.0.0.1:5500",
    "http://localhost:5500",
    "http://127.0.0.1:5501",
    "http://localhost:5501",
])


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_allowed_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Gallery Gateway"
    api_version: str = "v1"
    service_name: str = Field(
        default="Gallery Widget R2 Upload Service",
        description="Service identity reported by the status endpoint"
    )

    # Object store binding
    album_bucket: str = Field(
        default="",
        description="R2 bucket holding gallery images. Empty means the store is not bound."
    )

    # R2 Storage Configuration
    r2_account_id: str = Field(
        default="",
        description="Cloudflare account ID for R2"
    )
    r2_access_key_id: str = Field(
        default="",
        description="R2 access key ID"
    )
    r2_secret_access_key: str = Field(
        default="",
        description="R2 secret access key"
    )
    r2_endpoint_url: Optional[str] = Field(
        default=None,
        description="R2 endpoint URL. Auto-constructed from account_id if not provided."
    )
    r2_mock_mode: bool = Field(
        default=False,
        description="Use in-memory store instead of real R2. Enables local dev without object storage."
    )

    # CORS
    cors_allowed_origins: str = Field(
        default=DEFAULT_CORS_ORIGINS,
        description="Comma-separated list of origins echoed back in Access-Control-Allow-Origin."
    )
    cors_fallback_origin: str = Field(
        default="https://ebluvu.github.io",
        description="Origin sent when the request origin is not allow-listed."
    )

    # Albumizr migration
    albumizr_base_url: str = Field(
        default="https://albumizr.com",
        description="Base URL of the Albumizr site scraped by the migration function"
    )
    albumizr_timeout_seconds: float = Field(
        default=15.0,
        description="HTTP timeout for fetching an Albumizr album page"
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
    def cors_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [
            origin.strip()
            for origin in self.cors_allowed_origins.split(",")
            if origin.strip()
        ]

    @property
    def r2_endpoint(self) -> str:
        """
        Construct R2 endpoint URL from account ID.

        R2 endpoints follow the pattern: https://{account_id}.r2.cloudflarestorage.com
        """
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"

    @property
    def object_store_bound(self) -> bool:
        """True when storage operations have somewhere to go."""
        return self.r2_mock_mode or bool(self.album_bucket)

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields. An empty bucket is reported
        but is not fatal: the gateway answers storage calls with a
        configuration error until it is bound.
        """
        missing = []

        if self.r2_mock_mode:
            return missing

        if not self.album_bucket:
            missing.append("ALBUM_BUCKET")
        if not self.r2_endpoint_url and not self.r2_account_id:
            missing.append("R2_ACCOUNT_ID or R2_ENDPOINT_URL")
        if not self.r2_access_key_id:
            missing.append("R2_ACCESS_KEY_ID")
        if not self.r2_secret_access_key:
            missing.append("R2_SECRET_ACCESS_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings don't change during runtime, so they are loaded once per process.
    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
