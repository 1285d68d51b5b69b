"""
Configuration management for xfetch.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class XFetchSettings(BaseSettings):
    """Package settings, read from ``XFETCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="XFETCH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Render logs as JSON")

    # Early expiration
    default_beta: float = Field(default=1.0, ge=0.0, allow_inf_nan=False, description="Default XFetch beta for caches")

    # Observability
    metrics_enabled: bool = Field(default=False, description="Record Prometheus metrics for caches")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value):
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if value.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of: {', '.join(allowed_levels)}")
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> XFetchSettings:
    """Get the process-wide settings instance."""
    return XFetchSettings()


def reset_settings() -> None:
    """Drop the cached settings so the environment is read again."""
    get_settings.cache_clear()
