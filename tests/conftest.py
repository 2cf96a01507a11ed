from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from resmap.adapters.sqlalchemy.capture import SqlCaptureStore
from resmap.adapters.sqlalchemy.data_model import SqlAlchemyDataModel
from resmap.adapters.sqlalchemy.unit_of_work import shutdown, startup
from tests.helpers.model import build_resource_graph, metadata

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine.interfaces import DBAPIConnection


def _enable_foreign_keys(dbapi_connection: DBAPIConnection, _connection_record: object) -> None:
    # SQLite ignores ForeignKey constraints unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    # one shared connection so every unit of work sees the same in-memory database
    engine = create_engine("sqlite+pysqlite://", poolclass=StaticPool)
    event.listen(engine, "connect", _enable_foreign_keys)
    metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def capture_store() -> SqlCaptureStore:
    return SqlCaptureStore()


@pytest.fixture
def started_engine(sqlite_engine: Engine, capture_store: SqlCaptureStore) -> Iterator[Engine]:
    startup(engine=sqlite_engine, capture_store=capture_store, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()


@pytest.fixture
def data_model() -> SqlAlchemyDataModel:
    return SqlAlchemyDataModel(build_resource_graph(), metadata)
