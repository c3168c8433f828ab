"""Configuration module."""

from .settings import (
    APIConfig,
    PaginationConfig,
    PostgresConfig,
    Settings,
    config,
    get_settings,
)

__all__ = [
    "APIConfig",
    "PaginationConfig",
    "PostgresConfig",
    "Settings",
    "config",
    "get_settings",
]
