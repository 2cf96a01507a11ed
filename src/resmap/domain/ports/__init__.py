"""Domain ports (interfaces implemented by adapters)."""

from __future__ import annotations

from .data_model import DataModelService

__all__ = ["DataModelService"]
