"""
Configuration management for the HCDN billit storer.

Settings come from environment variables (or a .env file) grouped by
concern: billit store connection, publish concurrency and logging.

Responsibility: Centralized configuration and environment management
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseSettings):
    """Billit store connection settings"""

    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the billit instance (without /bills)"
    )
    timeout_seconds: Optional[float] = Field(
        default=30.0,
        description="Per-request timeout; None waits forever"
    )
    rate_limit_per_second: Optional[float] = Field(
        default=None,
        description="Maximum store requests per second; None disables limiting"
    )

    # Retry settings (legacy behaviour is a single attempt)
    retry_enabled: bool = Field(default=False)
    max_retries: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0.0)
    max_delay: float = Field(default=30.0, ge=0.0)

    model_config = SettingsConfigDict(
        env_prefix="BILLIT_",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Store paths are appended with a leading slash"""
        return v.rstrip("/")


class PublishConfig(BaseSettings):
    """Publish queue settings"""

    pool_size: int = Field(
        default=2,
        ge=1,
        description="Number of concurrent in-flight publishes"
    )

    model_config = SettingsConfigDict(
        env_prefix="PUBLISH_",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig(BaseSettings):
    """Application configuration"""

    log_level: str = Field(default="INFO")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names from the environment"""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class Settings(BaseSettings):
    """
    Global settings container.

    Loads configuration from:
    1. Environment variables
    2. .env file
    3. Default values

    Example:
        # Local development
        settings = Settings()

        # Production billit with retries
        settings = Settings(
            store=StoreConfig(
                base_url="https://billit.example.org",
                retry_enabled=True
            ),
            publish=PublishConfig(pool_size=4)
        )
    """

    app: AppConfig = Field(default_factory=AppConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
