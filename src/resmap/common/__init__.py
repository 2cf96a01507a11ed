"""Cross-cutting helpers."""

from __future__ import annotations

from .logging import SQL_LOGGER_NAME, configure_logging

__all__ = ["SQL_LOGGER_NAME", "configure_logging"]
