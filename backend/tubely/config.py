"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely upload service
using Pydantic Settings. It loads and validates all environment variables
required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection and pooling for video records
- S3 object storage for uploaded videos
- JWT access token validation
- Local asset storage and the public URLs built for it
- Upload size limits per route

Settings are loaded once at startup and frozen. The application built by
``tubely.main.create_app`` keeps its instance on ``app.state.settings`` and
hands it to request handlers through the ``get_app_settings`` dependency.
"""

from functools import lru_cache

from fastapi import Request
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# 10 MiB thumbnail form, 1 GiB video body
DEFAULT_MAX_THUMBNAIL_UPLOAD_BYTES = 10 << 20
DEFAULT_MAX_VIDEO_UPLOAD_BYTES = 1 << 30


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely upload service.

    This class uses Pydantic Settings to load configuration from environment
    variables and .env files with full type validation. Instances are frozen:
    nothing may change the configuration after startup.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Database connection URI and connection pool settings
    - S3: Object storage credentials, bucket and region
    - JWT: Secret, algorithm and issuer for access token validation
    - Assets: Local assets root and the public host serving it
    - Upload: Request body caps for the thumbnail and video routes

    Example usage:
        ```python
        from tubely.config import Settings

        settings = Settings(jwt_secret="a-long-random-secret-value-of-32-chars")
        print(f"Videos go to bucket: {settings.s3_bucket_name}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="tubely",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=False, description="Emit JSON log lines instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:8091"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in MongoDB connection pool", ge=0
    )

    mongodb_max_pool_size: int = Field(
        default=50, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # S3 Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None,
        description="S3 access key ID (None falls back to the boto3 credential chain)",
    )

    s3_secret_access_key: str | None = Field(
        default=None,
        description="S3 secret access key (None falls back to the boto3 credential chain)",
    )

    s3_bucket_name: str = Field(
        default="tubely-videos", description="S3 bucket name for uploaded videos"
    )

    s3_region: str = Field(default="us-east-1", description="AWS region of the S3 bucket")

    # =========================================================================
    # JWT Configuration
    # =========================================================================

    jwt_secret: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret used to sign and verify access tokens",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_issuer: str = Field(
        default="tubely-access", description="Issuer claim required on access tokens"
    )

    jwt_expiration_hours: int = Field(
        default=1, description="Lifetime of issued access tokens in hours", ge=1, le=168
    )

    # =========================================================================
    # Local Assets
    # =========================================================================

    assets_root: str = Field(
        default="./assets", description="Directory where thumbnails are written and served from"
    )

    public_scheme: str = Field(
        default="http", description="Scheme used in public thumbnail URLs"
    )

    public_host: str = Field(
        default="localhost", description="Host name used in public thumbnail URLs"
    )

    public_port: int | None = Field(
        default=None,
        description="Port used in public thumbnail URLs (defaults to the server port)",
        ge=1,
        le=65535,
    )

    # =========================================================================
    # Upload Limits
    # =========================================================================

    max_thumbnail_upload_bytes: int = Field(
        default=DEFAULT_MAX_THUMBNAIL_UPLOAD_BYTES,
        description="Largest request body accepted by the thumbnail route (10 MiB)",
        ge=1,
    )

    max_video_upload_bytes: int = Field(
        default=DEFAULT_MAX_VIDEO_UPLOAD_BYTES,
        description="Largest request body accepted by the video route (1 GiB)",
        ge=1,
    )

    upload_chunk_size_bytes: int = Field(
        default=1 << 20, description="Chunk size used when copying upload streams", ge=1024
    )

    upload_temp_dir: str | None = Field(
        default=None,
        description="Parent directory for staged video uploads (None uses the system temp dir)",
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms make sense with a shared secret."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(sorted(valid_algorithms))}"
            )
        return v.upper()

    @field_validator("public_scheme")
    @classmethod
    def validate_public_scheme(cls, v: str) -> str:
        normalized = v.lower()
        if normalized not in {"http", "https"}:
            raise ValueError(f"Invalid public_scheme '{v}'. Must be http or https")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def public_base_url(self) -> str:
        """
        Base URL under which the assets root is reachable.

        Built as ``scheme://host:port`` where the port falls back to the
        server port when no public port is configured.
        """
        port = self.public_port or self.port
        return f"{self.public_scheme}://{self.public_host}:{port}"


@lru_cache
def get_settings() -> Settings:
    """
    Get the process-wide Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call, and subsequent calls return the cached instance without
    re-reading environment variables or .env files.

    Returns:
        Settings: The process configuration instance.
    """
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """
    FastAPI dependency returning the Settings the application was built with.

    Args:
        request: The incoming request, used to reach ``app.state``.

    Returns:
        Settings: The frozen configuration passed to ``create_app``.
    """
    return request.app.state.settings
