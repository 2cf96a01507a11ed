"""Database connection configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import env_flag

DEFAULT_DATABASE_URI: Final[str] = "sqlite+pysqlite:///:memory:"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def get_database_config() -> DatabaseConfig:
    env_uri = os.getenv("RESMAP_DATABASE_URI") or os.getenv("DATABASE_URI")
    return DatabaseConfig(
        uri=env_uri or DEFAULT_DATABASE_URI,
        echo=env_flag("RESMAP_SQL_ECHO"),
    )
