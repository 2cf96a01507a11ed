"""Record executed SQL so tests can assert on what actually reached the database."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


@dataclass(frozen=True, slots=True)
class CapturedSqlCommand:
    statement: str
    parameters: dict[str, object]


@dataclass(slots=True)
class SqlCaptureStore:
    _commands: list[CapturedSqlCommand] = field(
        default_factory=list["CapturedSqlCommand"], repr=False
    )

    @property
    def sql_commands(self) -> tuple[CapturedSqlCommand, ...]:
        return tuple(self._commands)

    def add(self, statement: str, parameters: dict[str, object]) -> None:
        self._commands.append(CapturedSqlCommand(statement, dict(parameters)))

    def clear(self) -> None:
        self._commands.clear()


def format_parameter(name: str, value: object) -> str:
    """Render one bound parameter for log output, e.g. ``p1 = 'text'``."""

    if value is None:
        rendered = "NULL"
    elif isinstance(value, str):
        rendered = f"'{value}'"
    elif isinstance(value, Enum):
        rendered = f"{type(value).__name__}.{value.name}"
    elif isinstance(value, (datetime, date)):
        rendered = f"'{value.isoformat()}'"
    else:
        rendered = str(value)
    return f"{name} = {rendered}"


def format_parameters(parameters: dict[str, object]) -> str:
    return ", ".join(format_parameter(name, value) for name, value in parameters.items())
