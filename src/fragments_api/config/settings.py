# src/fragments_api/config/settings.py
from functools import lru_cache
from typing import Dict, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_STORAGE_BACKENDS = ["memory", "s3"]


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from fragments_api.config.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="fragments-api",
        description="Application name"
    )

    api_url: Optional[str] = Field(
        default=None,
        alias="API_URL",
        description="Public base URL used in Location headers (defaults to the request URL)"
    )

    # Storage Backend
    storage_backend: str = Field(
        default="memory",
        description="Storage backend: memory or s3"
    )

    max_fragment_size_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Largest accepted fragment payload"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # S3 Configuration
    s3_bucket_name: str = Field(
        default="fragments",
        validation_alias=AliasChoices("AWS_S3_BUCKET_NAME", "S3_BUCKET_NAME", "s3_bucket_name"),
        description="S3 bucket for fragment payloads"
    )

    # Authentication
    basic_auth_users: Dict[str, str] = Field(
        default_factory=dict,
        description="JSON mapping of user email to password for HTTP Basic auth"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator('storage_backend', mode='before')
    @classmethod
    def normalize_storage_backend(cls, v):
        """Accept backend names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('storage_backend')
    @classmethod
    def validate_storage_backend(cls, v):
        """Validate storage backend is one of the allowed values."""
        if v not in VALID_STORAGE_BACKENDS:
            raise ValueError(f"Invalid storage_backend: {v}. Must be one of {VALID_STORAGE_BACKENDS}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {v}")
        return level

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
