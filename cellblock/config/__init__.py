"""Configuration package."""

from cellblock.config.settings import (
    Environment,
    LogFormat,
    LogLevel,
    Settings,
    get_settings,
)

__all__ = [
    "Environment",
    "LogFormat",
    "LogLevel",
    "Settings",
    "get_settings",
]
