"""
MetaProxy Configuration Module
Centralized configuration management using pydantic-settings.
"""

from metaproxy.config.settings import (
    Settings,
    AppSettings,
    RedisSettings,
    get_settings,
    reload_settings,
)
from metaproxy.config.logging import configure_logging

__all__ = [
    "Settings",
    "AppSettings",
    "RedisSettings",
    "get_settings",
    "reload_settings",
    "configure_logging",
]
