"""Application configuration helpers."""

from __future__ import annotations

from .database import DEFAULT_DATABASE_URI, DatabaseConfig, get_database_config
from .env import ConfigurationError, env_flag

__all__ = [
    "DEFAULT_DATABASE_URI",
    "ConfigurationError",
    "DatabaseConfig",
    "env_flag",
    "get_database_config",
]
