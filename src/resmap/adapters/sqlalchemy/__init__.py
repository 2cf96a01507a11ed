"""SQLAlchemy adapter package for resmap."""

from __future__ import annotations

from .capture import CapturedSqlCommand, SqlCaptureStore
from .commands import ParameterGenerator, SqlCommand
from .data_model import SqlAlchemyDataModel
from .repository import SqlAlchemyResourceRepository, TargetedFields
from .select_builder import SelectQuery, SelectStatementBuilder
from .sequencer import CommandSequencer, WritePlan
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "CapturedSqlCommand",
    "CommandSequencer",
    "ParameterGenerator",
    "SelectQuery",
    "SelectStatementBuilder",
    "SqlAlchemyDataModel",
    "SqlAlchemyResourceRepository",
    "SqlAlchemyUnitOfWork",
    "SqlCaptureStore",
    "SqlCommand",
    "StartupError",
    "TargetedFields",
    "WritePlan",
    "shutdown",
    "startup",
]
