"""
MetaProxy Settings
Pydantic-based configuration with support for env vars and config files.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    name: str = Field(default="MetaProxy", alias="APP_NAME")
    env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class RedisSettings(BaseSettings):
    """Redis settings for the shared allow-list and credential store."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    host: str = Field(default="localhost", alias="REDIS_HOST")
    port: int = Field(default=6379, alias="REDIS_PORT")
    password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    db: int = Field(default=0, alias="REDIS_DB")

    allowlist_key: str = Field(
        default="metaproxy:allowed-hosts",
        alias="REDIS_ALLOWLIST_KEY",
    )
    credential_prefix: str = Field(
        default="metaproxy:credentials:",
        alias="REDIS_CREDENTIAL_PREFIX",
    )


class Settings(BaseSettings):
    """
    Main settings class that aggregates all config sections.

    Usage:
        from metaproxy.config import get_settings

        settings = get_settings()
        print(settings.app.log_level)
        print(settings.redis.allowlist_key)
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-settings
    app: AppSettings = Field(default_factory=AppSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    def __init__(self, **data):
        super().__init__(**data)
        # Initialize sub-settings with same env source
        self.app = AppSettings()
        self.redis = RedisSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: The application settings
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Returns:
        Settings: Fresh settings instance
    """
    get_settings.cache_clear()
    return get_settings()
