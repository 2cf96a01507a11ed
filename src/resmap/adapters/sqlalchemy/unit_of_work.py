"""SQLAlchemy-backed unit of work: one connection, one transaction, checked commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from resmap.adapters.sqlalchemy.capture import format_parameters
from resmap.config import get_database_config
from resmap.domain.errors import DataStoreUpdateError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from types import TracebackType

    from sqlalchemy import Connection, MetaData, Select
    from sqlalchemy.engine import CursorResult, Engine, Row, RootTransaction

    from resmap.adapters.sqlalchemy.capture import SqlCaptureStore
    from resmap.adapters.sqlalchemy.commands import SqlCommand
    from resmap.domain.cancellation import Cancellation

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    capture_store: SqlCaptureStore | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    metadata: MetaData | None = None,
    capture_store: SqlCaptureStore | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine; optionally create tables from ``metadata``."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        config = get_database_config()
        engine = create_engine(database_uri or config.uri, echo=config.echo)
    if metadata is not None:
        log.info("Creating all tables")
        metadata.create_all(engine)

    _STATE.engine = engine
    _STATE.capture_store = capture_store


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.capture_store = None


class SqlAlchemyUnitOfWork:
    """Owns one connection and its transaction for the duration of a ``with`` block.

    Every command's affected-row count is verified right after it runs; driver
    errors and row-count violations surface as ``DataStoreUpdateError``. Leaving
    the block with an exception rolls the transaction back.
    """

    def __init__(self) -> None:
        if _STATE.engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call resmap.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self.engine: Engine = _STATE.engine
        self.capture_store = _STATE.capture_store
        self._connection: Connection | None = None
        self._transaction: RootTransaction | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._connection is not None:
            raise StartupError("Unit of work connection already initialised")
        self._connection = self.engine.connect()
        self._transaction = self._connection.begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            if self._connection is not None:
                self._connection.close()
            self._connection = None
            self._transaction = None
        return False  # don't swallow exceptions

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise StartupError("Unit of work connection not initialised")
        return self._connection

    @property
    def is_active(self) -> bool:
        return self._transaction is not None and self._transaction.is_active

    def commit(self) -> None:
        if self._transaction is None:
            raise StartupError("Unit of work transaction not initialised")
        try:
            self._transaction.commit()
        except SQLAlchemyError as exc:
            raise DataStoreUpdateError from exc

    def rollback(self) -> None:
        if self._transaction is not None and self._transaction.is_active:
            log.debug("Rolling back transaction")
            self._transaction.rollback()

    def execute_commands(
        self,
        commands: Iterable[SqlCommand],
        cancellation: Cancellation | None = None,
    ) -> None:
        for command in commands:
            rows_affected = self._execute(command, cancellation).rowcount
            command.expected_rows.verify(rows_affected)

    def execute_insert(
        self,
        command: SqlCommand,
        cancellation: Cancellation | None = None,
    ) -> object:
        """Run an INSERT and return the primary key of the new row."""

        result = self._execute(command, cancellation)
        command.expected_rows.verify(result.rowcount)
        primary_key = result.inserted_primary_key
        if primary_key is None:
            raise DataStoreUpdateError("Insert did not produce a primary key.")
        return primary_key[0]

    def stream(
        self,
        statement: Select[tuple[object, ...]],
        cancellation: Cancellation | None = None,
    ) -> Iterator[Row[tuple[object, ...]]]:
        """Yield result rows; cancellation is only honoured before the query starts."""

        if cancellation is not None:
            cancellation.raise_if_cancelled()
        parameters = dict(statement.compile().params)
        self._log(str(statement.compile()), parameters)
        yield from self.connection.execute(statement)

    def scalar(
        self,
        statement: Select[tuple[int]],
        cancellation: Cancellation | None = None,
    ) -> int:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        self._log(str(statement.compile()), dict(statement.compile().params))
        return self.connection.execute(statement).scalar_one()

    def _execute(
        self,
        command: SqlCommand,
        cancellation: Cancellation | None,
    ) -> CursorResult[Any]:
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        self._log(command.statement_text, command.parameters)
        try:
            return self.connection.execute(command.statement)
        except SQLAlchemyError as exc:
            raise DataStoreUpdateError from exc

    def _log(self, statement_text: str, parameters: dict[str, object]) -> None:
        if self.capture_store is not None:
            self.capture_store.add(statement_text, parameters)
        if not log.isEnabledFor(logging.INFO):
            return
        if parameters:
            log.info(
                "Executing SQL with parameters: %s\n%s",
                format_parameters(parameters),
                statement_text,
            )
        else:
            log.info("Executing SQL: \n%s", statement_text)
